"""
Publish a comment from the command line, for manual end-to-end checks.

Reads the same environment as the Lambda (GH_TOKEN, GH_USER, SRC_OWNER,
SRC_REPO, DST_OWNER, DST_REPO). Without arguments a fixed demo comment is
posted.

Usage:
  python tools/post_comment.py [<subdir> <name> <comment> [email]]
"""
import sys

from commenter.config import Config
from commenter.errors import CommenterError
from commenter.publisher import Commenter

DEMO_COMMENT = {
    "subdir": "sqlite",
    "comment": "This is my\nmultiline comment",
    "name": "Jimbo Johnson",
    "email": "foo@example.com",
}


def parse_args(argv):
    if not argv:
        return dict(DEMO_COMMENT)
    if len(argv) not in (3, 4):
        return None
    subdir, name, comment = argv[:3]
    return {
        "subdir": subdir,
        "name": name,
        "comment": comment.replace("\\n", "\n"),
        "email": argv[3] if len(argv) == 4 else None,
    }


def main(argv=None):
    args = parse_args(sys.argv[1:] if argv is None else argv)
    if args is None:
        print("usage: post_comment.py [<subdir> <name> <comment> [email]]")
        return 2
    try:
        commenter = Commenter.from_config(Config.from_env())
        comment = commenter.add_comment(args)
    except (CommenterError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    print("comment", comment.id, "on branch", comment.branch)
    return 0


if __name__ == "__main__":
    sys.exit(main())
