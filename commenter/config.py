import json
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from commenter._log import log
from commenter.errors import ConfigError
from commenter.github_client import API_HOST
from commenter.models import RepoRef


def _get_secret(arn: str) -> Optional[str]:
    import boto3

    sm = boto3.client("secretsmanager")
    val = sm.get_secret_value(SecretId=arn)
    secret = val.get("SecretString")
    if not secret:
        return None
    try:
        js = json.loads(secret)
    except json.JSONDecodeError:
        return secret.strip()
    if isinstance(js, dict):
        return js.get("token") or js.get("GH_TOKEN")
    return secret.strip()


@dataclass(frozen=True)
class Config:
    """Everything a publish run needs, read once at invocation start.

    Env:
      - GH_USER, SRC_OWNER, SRC_REPO, DST_OWNER, DST_REPO (required)
      - GH_TOKEN, or GH_TOKEN_SECRET_ARN naming a Secrets Manager secret
        holding the token (raw string or JSON with a ``token`` key)
      - GH_API_HOST (default api.github.com), BASE_BRANCH (default master)
    """

    token: str
    user: str
    src: RepoRef
    dst: RepoRef
    api_host: str = API_HOST
    base_branch: str = "master"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Config":
        env = os.environ if environ is None else environ

        def need(name: str) -> str:
            val = env.get(name)
            if val is None or val == "":
                raise ConfigError(f"Missing env var {name}")
            return val

        user = need("GH_USER")
        src = RepoRef(need("SRC_OWNER"), need("SRC_REPO"))
        dst = RepoRef(need("DST_OWNER"), need("DST_REPO"))

        token = env.get("GH_TOKEN")
        if not token:
            arn = env.get("GH_TOKEN_SECRET_ARN")
            if not arn:
                raise ConfigError("Missing env var GH_TOKEN")
            token = _get_secret(arn)
            if not token:
                raise ConfigError(f"Secret {arn} holds no token")
            log("DEBUG", "github token loaded from secrets manager", None)

        return cls(
            token=token,
            user=user,
            src=src,
            dst=dst,
            api_host=env.get("GH_API_HOST") or API_HOST,
            base_branch=env.get("BASE_BRANCH") or "master",
        )
