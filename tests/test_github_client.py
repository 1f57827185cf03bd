import base64
import io
import json
import urllib.error
from email.message import Message

import pytest

from commenter import github_client as mod


class _Resp:
    def __init__(self, body, status=200):
        self._body = body
        self.status = status

    def read(self):
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


@pytest.fixture
def sent(monkeypatch):
    reqs = []

    def fake_urlopen(req, timeout=None):
        reqs.append(req)
        return _Resp(b'{"ok": true}', 201)

    monkeypatch.setattr(mod.urllib.request, "urlopen", fake_urlopen)
    return reqs


def test_request_sends_identity_headers_and_payload(sent):
    client = mod.GitHubClient("s3cret", "alice")
    body = client.request("POST", "/repos/a/b/git/refs", '{"ref": "x"}',
                          headers={"User-Agent": "spoof", "authorization": "token other", "X-Trace": "1"})

    assert body == '{"ok": true}'
    req = sent[0]
    assert req.full_url == "https://api.github.com/repos/a/b/git/refs"
    assert req.get_method() == "POST"
    assert req.data == b'{"ref": "x"}'
    assert req.get_header("User-agent") == "alice"
    expected = "Basic " + base64.b64encode(b"alice:s3cret").decode()
    assert req.get_header("Authorization") == expected
    assert req.get_header("X-trace") == "1"
    assert req.get_header("Content-type") == "application/json"
    assert req.get_header("Accept") == "application/vnd.github+json"


def test_get_without_payload_sends_no_body(sent):
    mod.GitHubClient("t", "alice").request("GET", "/repos/a/b/git/refs/heads/master")
    assert sent[0].data is None
    assert sent[0].get_header("Content-type") is None


def test_host_and_port_overrides(sent):
    client = mod.GitHubClient("t", "alice", hostname="ghe.example.com")
    client.request("GET", "/api/v3/user")
    client.request("GET", "/user", hostname="localhost", port=8443)
    assert sent[0].full_url == "https://ghe.example.com/api/v3/user"
    assert sent[1].full_url == "https://localhost:8443/user"


def test_error_status_still_returns_body(monkeypatch):
    def fake_urlopen(req, timeout=None):
        raise urllib.error.HTTPError(req.full_url, 422, "Unprocessable Entity", Message(),
                                     io.BytesIO(b'{"message": "Reference already exists"}'))

    monkeypatch.setattr(mod.urllib.request, "urlopen", fake_urlopen)
    body = mod.GitHubClient("t", "alice").request("POST", "/repos/a/b/git/refs", "{}")
    assert body == '{"message": "Reference already exists"}'


def test_transport_error_propagates(monkeypatch):
    def fake_urlopen(req, timeout=None):
        raise urllib.error.URLError("connection refused")

    monkeypatch.setattr(mod.urllib.request, "urlopen", fake_urlopen)
    with pytest.raises(urllib.error.URLError):
        mod.GitHubClient("t", "alice").request("GET", "/user")


def test_unknown_method_rejected(sent):
    with pytest.raises(ValueError):
        mod.GitHubClient("t", "alice").request("HEAD", "/user")
    assert sent == []


def test_request_logged_at_debug(monkeypatch, capsys, sent):
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    mod.GitHubClient("t", "alice").request("GET", "/repos/a/b/git/refs/heads/master")
    rec = json.loads(capsys.readouterr().out)
    assert rec["level"] == "DEBUG"
    assert rec["method"] == "GET"
    assert rec["path"] == "/repos/a/b/git/refs/heads/master"
    assert rec["status"] == 201
