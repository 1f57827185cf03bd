"""Publish a site comment as a pull request.

The source repository is a fork of the destination (the site's content repo).
Each comment gets its own branch in the fork, carrying a single JSON file under
``_data/comments/<subdir>/``, and a pull request back into the destination:

    fast-forward fork -> branch -> commit file -> pull request

Steps run strictly in order. Any failure stops the chain; once the branch
exists a later failure deletes it again before the error is re-raised.
"""
import base64
import json
from typing import Any, Dict, Mapping, Union
from urllib.parse import quote

from commenter._log import log
from commenter.config import Config
from commenter.errors import (
    BranchCreateFailed,
    FileCommitFailed,
    GitHubError,
    MergeFailed,
    PRCreateFailed,
    ResponseError,
    ValidationError,
)
from commenter.github_client import GitHubClient
from commenter.models import (
    Comment,
    CommentInput,
    ContentResult,
    GitRef,
    MergeResult,
    PullRequestResult,
    RepoRef,
)


def _parse(parser, body: str, err_cls):
    try:
        return parser(body)
    except ResponseError as e:
        raise err_cls(e.detail, e.api_message) from e


def _check(comment: Comment, email: Any) -> None:
    if not comment.comment or not isinstance(comment.comment, str):
        raise ValidationError("No comment")
    if not comment.name or not isinstance(comment.name, str):
        raise ValidationError("No name")
    if not comment.subdir or not isinstance(comment.subdir, str):
        raise ValidationError("No subdir")
    if any(seg in ("", ".", "..") for seg in comment.subdir.split("/")):
        raise ValidationError("Invalid subdir")
    if email and not isinstance(email, str):
        raise ValidationError("Invalid email")


class Commenter:
    def __init__(self, client: GitHubClient, src: RepoRef, dst: RepoRef, base_branch: str = "master"):
        self.client = client
        self.src = src
        self.dst = dst
        self.base_branch = base_branch

    @classmethod
    def from_config(cls, config: Config) -> "Commenter":
        client = GitHubClient(config.token, config.user, hostname=config.api_host)
        return cls(client, config.src, config.dst, base_branch=config.base_branch)

    def _repo_path(self, repo: RepoRef, rest: str) -> str:
        return f"/repos/{quote(repo.owner, safe='')}/{quote(repo.name, safe='')}/{rest}"

    def _ctx(self, comment: Comment) -> Dict[str, str]:
        return {"comment_id": comment.id, "branch": comment.branch, "repo": self.src.slug}

    def add_comment(self, args: Union[CommentInput, Mapping[str, Any]]) -> Comment:
        """Publish one comment and return the record that was committed.

        Raises ValidationError before touching GitHub when comment, name or
        subdir is missing; GitHubError subclasses name the step that failed.
        """
        if not isinstance(args, CommentInput):
            args = CommentInput.from_dict(args)
        comment = Comment.new(args)
        _check(comment, args.email)

        ctx = self._ctx(comment)
        branch = comment.branch

        log("INFO", "fast forwarding", ctx, head=f"{self.dst.owner}:{self.base_branch}")
        merge = self.fast_forward()
        log("INFO", "creating branch", ctx, merged=merge.merged, merge_sha=merge.sha)
        ref = self.create_branch(branch)
        try:
            log("INFO", "creating comment file", ctx, ref=ref.ref, sha=ref.sha, path=comment.path)
            content = self.create_comment_file(branch, comment)
            log("INFO", "creating pull request", ctx, commit_sha=content.commit_sha)
            pr = self.create_pull_request(branch, comment)
        except Exception as e:
            log("ERROR", "publish failed after branching; deleting branch", ctx, error=str(e))
            self._rollback(branch, ctx)
            raise
        log("INFO", "comment added", ctx, pr_number=pr.number, pr_url=pr.html_url)
        return comment

    def fast_forward(self) -> MergeResult:
        """Merge the destination's base branch into the fork's base branch."""
        body = self.client.request(
            "POST",
            self._repo_path(self.src, "merges"),
            json.dumps({
                "base": self.base_branch,
                "head": f"{self.dst.owner}:{self.base_branch}",
            }),
        )
        return _parse(MergeResult.parse, body, MergeFailed)

    def create_branch(self, branch: str) -> GitRef:
        """Create ``branch`` in the fork at the tip of its base branch."""
        body = self.client.request(
            "GET",
            self._repo_path(self.src, f"git/refs/heads/{quote(self.base_branch)}"),
        )
        base = _parse(GitRef.parse, body, BranchCreateFailed)

        body = self.client.request(
            "POST",
            self._repo_path(self.src, "git/refs"),
            json.dumps({"ref": f"refs/heads/{branch}", "sha": base.sha}),
        )
        return _parse(GitRef.parse, body, BranchCreateFailed)

    def create_comment_file(self, branch: str, comment: Comment) -> ContentResult:
        content = base64.b64encode(comment.to_json().encode("utf-8")).decode("ascii")
        body = self.client.request(
            "PUT",
            self._repo_path(self.src, f"contents/{quote(comment.path)}"),
            json.dumps({
                "message": comment.title,
                "content": content,
                "branch": branch,
            }),
        )
        return _parse(ContentResult.parse, body, FileCommitFailed)

    def create_pull_request(self, branch: str, comment: Comment) -> PullRequestResult:
        summary = json.dumps({
            "name": comment.name,
            "message": comment.comment,
            "date": comment.date,
        }, indent=2, ensure_ascii=False)
        body = self.client.request(
            "POST",
            self._repo_path(self.dst, "pulls"),
            json.dumps({
                "title": comment.title,
                "body": f"New comment on `{comment.subdir}`:\n\n```\n{summary}\n```",
                "head": f"{self.src.owner}:{branch}",
                "base": self.base_branch,
            }),
        )
        return _parse(PullRequestResult.parse, body, PRCreateFailed)

    def delete_branch(self, branch: str) -> None:
        body = self.client.request(
            "DELETE",
            self._repo_path(self.src, f"git/refs/heads/{quote(branch)}"),
        )
        # 204 on success; anything with a message is GitHub refusing
        if body and body.strip():
            try:
                data = json.loads(body)
            except json.JSONDecodeError:
                data = None
            msg = data.get("message") if isinstance(data, dict) else None
            raise GitHubError(f"could not delete branch {branch}", msg)

    def _rollback(self, branch: str, ctx: Dict[str, str]) -> None:
        try:
            self.delete_branch(branch)
            log("INFO", "branch deleted", ctx)
        except Exception as e:
            # Caller sees the failure that triggered cleanup
            log("ERROR", "branch cleanup failed", ctx, error=str(e))
