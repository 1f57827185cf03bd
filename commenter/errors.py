"""Exception types raised while publishing a comment."""
from typing import Optional


class CommenterError(Exception):
    pass


class ConfigError(CommenterError):
    pass


class ValidationError(CommenterError, ValueError):
    pass


class GitHubError(CommenterError):
    """A GitHub API call answered with an error or an unusable body.

    ``step`` names the orchestration step, ``api_message`` carries GitHub's own
    ``message`` field when the body had one.
    """

    step = "github"

    def __init__(self, detail: str, api_message: Optional[str] = None):
        self.detail = detail
        self.api_message = api_message
        text = f"{self.step}: {detail}"
        if api_message and api_message not in detail:
            text += f" ({api_message})"
        super().__init__(text)


class ResponseError(GitHubError):
    step = "response"


class MergeFailed(GitHubError):
    step = "fast-forward"


class BranchCreateFailed(GitHubError):
    step = "create-branch"


class FileCommitFailed(GitHubError):
    step = "create-comment-file"


class PRCreateFailed(GitHubError):
    step = "create-pull-request"
