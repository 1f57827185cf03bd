import json
import sys
import types

import pytest

from commenter import config as mod
from commenter.errors import ConfigError
from commenter.models import RepoRef

ENV = {
    "GH_TOKEN": "t0ken",
    "GH_USER": "alice",
    "SRC_OWNER": "alice",
    "SRC_REPO": "blog",
    "DST_OWNER": "site",
    "DST_REPO": "blog",
}


def test_from_env_reads_identity_and_repos():
    cfg = mod.Config.from_env(ENV)
    assert cfg.token == "t0ken"
    assert cfg.user == "alice"
    assert cfg.src == RepoRef("alice", "blog")
    assert cfg.dst == RepoRef("site", "blog")
    assert cfg.api_host == "api.github.com"
    assert cfg.base_branch == "master"


def test_from_env_optional_overrides():
    cfg = mod.Config.from_env(dict(ENV, GH_API_HOST="ghe.local", BASE_BRANCH="main"))
    assert cfg.api_host == "ghe.local"
    assert cfg.base_branch == "main"


@pytest.mark.parametrize("name", ["GH_USER", "SRC_OWNER", "SRC_REPO", "DST_OWNER", "DST_REPO", "GH_TOKEN"])
def test_from_env_missing_var(name):
    env = dict(ENV)
    del env[name]
    with pytest.raises(ConfigError, match=f"Missing env var {name}"):
        mod.Config.from_env(env)


def test_from_env_uses_process_environment(monkeypatch):
    for k, v in ENV.items():
        monkeypatch.setenv(k, v)
    assert mod.Config.from_env().src.slug == "alice/blog"


def test_token_from_secrets_manager(monkeypatch):
    monkeypatch.setattr(mod, "_get_secret", lambda arn: "from-secret" if arn == "arn:sm:gh" else None)
    env = dict(ENV, GH_TOKEN_SECRET_ARN="arn:sm:gh")
    del env["GH_TOKEN"]
    assert mod.Config.from_env(env).token == "from-secret"


def test_empty_secret_is_config_error(monkeypatch):
    monkeypatch.setattr(mod, "_get_secret", lambda arn: None)
    env = dict(ENV, GH_TOKEN_SECRET_ARN="arn:sm:gh")
    del env["GH_TOKEN"]
    with pytest.raises(ConfigError):
        mod.Config.from_env(env)


@pytest.mark.parametrize("secret,expected", [
    (json.dumps({"token": "abc"}), "abc"),
    ("raw-token\n", "raw-token"),
])
def test_get_secret_accepts_json_or_raw(monkeypatch, secret, expected):
    class FakeSM:
        def get_secret_value(self, SecretId):
            return {"SecretString": secret}

    monkeypatch.setitem(sys.modules, "boto3", types.SimpleNamespace(client=lambda name: FakeSM()))
    assert mod._get_secret("arn:sm:gh") == expected
