"""Comment records and the GitHub response shapes the publisher relies on."""
import json
import time
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from commenter.errors import ResponseError, ValidationError
from commenter.gravatar import gravatar_hash

COMMENTS_DIR = "_data/comments"


@dataclass(frozen=True)
class RepoRef:
    owner: str
    name: str

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True)
class CommentInput:
    subdir: Any = None
    comment: Any = None
    name: Any = None
    email: Any = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CommentInput":
        if not isinstance(data, Mapping):
            raise ValidationError("Comment must be a JSON object")
        return cls(
            subdir=data.get("subdir"),
            comment=data.get("comment"),
            name=data.get("name"),
            email=data.get("email"),
        )


@dataclass(frozen=True)
class Comment:
    subdir: str
    comment: str
    name: str
    email_hash: Optional[str]
    date: int
    id: str

    @classmethod
    def new(cls, args: CommentInput, now_ms: Optional[int] = None, token: Optional[str] = None) -> "Comment":
        """Stamp a submission with its id and creation time.

        The id is ``<epoch-millis>-<uuid4>``; it names both the branch and the
        committed file, so it has to stay unique and filesystem safe.
        """
        now = int(time.time() * 1000) if now_ms is None else now_ms
        token = token or str(uuid.uuid4())
        email = args.email
        return cls(
            subdir=args.subdir,
            comment=args.comment,
            name=args.name,
            email_hash=gravatar_hash(email) if email and isinstance(email, str) else None,
            date=now,
            id=f"{now}-{token}",
        )

    @property
    def branch(self) -> str:
        return f"comment-{self.id}"

    @property
    def path(self) -> str:
        return f"{COMMENTS_DIR}/{self.subdir}/entry{self.id}.json"

    @property
    def title(self) -> str:
        return f"New comment on {self.subdir} from {self.name}"

    def to_dict(self) -> Dict[str, Any]:
        # Field order is the committed file's layout
        return {
            "subdir": self.subdir,
            "comment": self.comment,
            "email": self.email_hash,
            "name": self.name,
            "date": self.date,
            "_id": self.id,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)


def _load(body: str) -> Optional[Any]:
    if body is None or not body.strip():
        return None
    try:
        return json.loads(body)
    except json.JSONDecodeError as e:
        raise ResponseError(f"body is not JSON: {body[:200]!r}") from e


def _api_message(data: Any) -> Optional[str]:
    if isinstance(data, dict):
        msg = data.get("message") or data.get("error")
        if msg:
            return str(msg)
    return None


def _object(body: str, what: str) -> Dict[str, Any]:
    data = _load(body)
    if not isinstance(data, dict):
        raise ResponseError(f"expected a {what} object", _api_message(data))
    return data


def _require(data: Dict[str, Any], what: str, *keys: str) -> Any:
    cur: Any = data
    for k in keys:
        if not isinstance(cur, dict) or cur.get(k) in (None, ""):
            raise ResponseError(f"{what} is missing {'.'.join(keys)}", _api_message(data))
        cur = cur[k]
    return cur


@dataclass(frozen=True)
class MergeResult:
    sha: Optional[str]

    @property
    def merged(self) -> bool:
        return self.sha is not None

    @classmethod
    def parse(cls, body: str) -> "MergeResult":
        # 204 No Content: base already contains head
        if _load(body) is None:
            return cls(sha=None)
        data = _object(body, "merge")
        return cls(sha=_require(data, "merge", "sha"))


@dataclass(frozen=True)
class GitRef:
    ref: str
    sha: str

    @classmethod
    def parse(cls, body: str) -> "GitRef":
        data = _object(body, "ref")
        return cls(ref=data.get("ref") or "", sha=_require(data, "ref", "object", "sha"))


@dataclass(frozen=True)
class ContentResult:
    path: str
    commit_sha: str

    @classmethod
    def parse(cls, body: str) -> "ContentResult":
        data = _object(body, "content")
        return cls(
            path=_require(data, "content", "content", "path"),
            commit_sha=_require(data, "content", "commit", "sha"),
        )


@dataclass(frozen=True)
class PullRequestResult:
    number: int
    html_url: str

    @classmethod
    def parse(cls, body: str) -> "PullRequestResult":
        data = _object(body, "pull request")
        return cls(
            number=_require(data, "pull request", "number"),
            html_url=_require(data, "pull request", "html_url"),
        )
