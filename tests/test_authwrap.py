import base64

from authwrap import BasicAuthMiddleware


def inner_app(environ, start_response):
    start_response("200 OK", [("Content-Type", "text/plain")])
    return [b"ok"]


def call(mw, path="/ingest", auth=None):
    seen = {}

    def start_response(status, headers):
        seen["status"] = status

    environ = {"PATH_INFO": path}
    if auth is not None:
        environ["HTTP_AUTHORIZATION"] = auth
    body = mw(environ, start_response)
    return seen["status"], body


def basic(user, pw):
    return "Basic " + base64.b64encode(f"{user}:{pw}".encode()).decode()


def test_disabled_or_unconfigured_passes_through():
    assert call(BasicAuthMiddleware(inner_app, enabled=False))[0] == "200 OK"
    assert call(BasicAuthMiddleware(inner_app, enabled=True, username="", password=""))[0] == "200 OK"


def test_requires_credentials():
    mw = BasicAuthMiddleware(inner_app, username="admin", password="s3cret")
    assert call(mw)[0].startswith("401")
    assert call(mw, auth=basic("admin", "wrong"))[0].startswith("401")
    assert call(mw, auth="Basic !!!notbase64")[0].startswith("401")
    assert call(mw, auth=basic("admin", "s3cret")) == ("200 OK", [b"ok"])


def test_exempt_paths_skip_auth():
    mw = BasicAuthMiddleware(inner_app, username="admin", password="s3cret", exempt_paths=["/healthz"])
    assert call(mw, path="/healthz")[0] == "200 OK"
    assert call(mw, path="/ingest")[0].startswith("401")
