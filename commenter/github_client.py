import base64
import urllib.error
import urllib.request
from typing import Dict, Optional, Union

from commenter._log import log

API_HOST = "api.github.com"
API_PORT = 443
METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE")


class GitHubClient:
    """Minimal GitHub REST client authenticating every call as ``user``.

    ``request`` hands back the raw response body whatever the HTTP status;
    callers parse it and decide whether the API accepted the call.
    """

    def __init__(self, token: str, user: str, hostname: str = API_HOST, port: int = API_PORT,
                 timeout: Optional[float] = None):
        self.token = token
        self.user = user
        self.hostname = hostname
        self.port = port
        self.timeout = timeout

    def _auth(self) -> str:
        raw = f"{self.user}:{self.token}".encode("utf-8")
        return "Basic " + base64.b64encode(raw).decode("ascii")

    def _url(self, path: str, hostname: Optional[str], port: Optional[int]) -> str:
        host = hostname or self.hostname
        port = port or self.port
        netloc = host if port == 443 else f"{host}:{port}"
        if not path.startswith("/"):
            path = "/" + path
        return f"https://{netloc}{path}"

    def request(self, method: str, path: str, payload: Union[str, bytes, None] = None,
                headers: Optional[Dict[str, str]] = None, hostname: Optional[str] = None,
                port: Optional[int] = None) -> str:
        method = method.upper()
        if method not in METHODS:
            raise ValueError(f"unsupported method {method}")
        url = self._url(path, hostname, port)

        # Identity headers always win over whatever the caller passed
        hdrs = {k: v for k, v in (headers or {}).items()
                if k.lower() not in ("user-agent", "authorization")}
        lowered = {k.lower() for k in hdrs}
        if "accept" not in lowered:
            hdrs["Accept"] = "application/vnd.github+json"
        data = None
        if payload:
            data = payload.encode("utf-8") if isinstance(payload, str) else payload
            if "content-type" not in lowered:
                hdrs["Content-Type"] = "application/json"
        hdrs["User-Agent"] = self.user
        hdrs["Authorization"] = self._auth()

        req = urllib.request.Request(url, data=data, method=method)
        for k, v in hdrs.items():
            req.add_header(k, v)
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                status = resp.status
                body = resp.read()
        except urllib.error.HTTPError as e:
            # 4xx/5xx still carry a JSON body worth returning
            status = e.code
            body = e.read() or b""
            e.close()
        log("DEBUG", "github request", None, method=method, path=path, status=status)
        return body.decode("utf-8", errors="replace")
