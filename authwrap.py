import base64
import hmac


class BasicAuthMiddleware:
    """WSGI basic auth in front of the ingest app; exempt paths (health probes) pass through."""

    def __init__(self, app, enabled=True, username="", password="", realm="Restricted", exempt_paths=()):
        self.app = app
        self.enabled = bool(enabled and username and password)
        self.user = username
        self.pw = password
        self.realm = realm
        self.exempt = tuple(exempt_paths or ())

    def _authorized(self, header: str) -> bool:
        if not header.startswith("Basic "):
            return False
        try:
            raw = base64.b64decode(header.split(" ", 1)[1]).decode("utf-8")
            u, p = raw.split(":", 1)
        except (ValueError, UnicodeDecodeError):
            return False
        return hmac.compare_digest(u, self.user) and hmac.compare_digest(p, self.pw)

    def __call__(self, environ, start_response):
        if not self.enabled or environ.get("PATH_INFO", "") in self.exempt:
            return self.app(environ, start_response)
        if self._authorized(environ.get("HTTP_AUTHORIZATION", "")):
            return self.app(environ, start_response)
        start_response("401 Unauthorized", [
            ("WWW-Authenticate", f'Basic realm="{self.realm}"'),
            ("Content-Type", "text/plain"),
        ])
        return [b"Unauthorized"]
