"""
Acquisition tests. Network access is replaced with a fake urlopen.
"""

from __future__ import annotations

import io
import urllib.error
import urllib.request
from email.message import Message

import pytest

from proofview.errors import LoadError
from proofview.loader import PROXY_HINT, is_url, load_text, proxy_url


class FakeResponse:
    def __init__(self, body: bytes, content_type: str = "text/plain; charset=utf-8"):
        self._body = body
        self.headers = Message()
        self.headers["Content-Type"] = content_type

    def read(self) -> bytes:
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


@pytest.fixture
def fake_urlopen(monkeypatch):
    requests = []

    def install(result):
        def urlopen(req, timeout=None):
            requests.append((req.full_url, timeout))
            if isinstance(result, Exception):
                raise result
            return result
        monkeypatch.setattr(urllib.request, "urlopen", urlopen)
        return requests

    return install


def test_is_url():
    assert is_url("https://example.com/p.sexpr")
    assert is_url("HTTP://example.com")
    assert not is_url("proofs/p.sexpr")
    assert not is_url("/tmp/p.sexpr")


def test_proxy_url_encodes_target():
    assert (proxy_url("https://x.org/a b?c=1")
            == "https://api.allorigins.win/raw?url=https%3A%2F%2Fx.org%2Fa%20b%3Fc%3D1")
    assert proxy_url("http://h/p", "http://proxy/?u={url}") == "http://proxy/?u=http%3A%2F%2Fh%2Fp"


def test_read_local_file(tmp_path):
    path = tmp_path / "doc.sexpr"
    path.write_text("(a ∧ b)", encoding="utf-8")
    assert load_text(str(path)) == "(a ∧ b)"


def test_missing_file():
    with pytest.raises(LoadError) as info:
        load_text("/nonexistent/doc.sexpr")
    assert "File not found" in str(info.value)
    assert info.value.source == "/nonexistent/doc.sexpr"


def test_empty_source():
    with pytest.raises(LoadError):
        load_text("   ")


def test_fetch_url(fake_urlopen):
    requests = fake_urlopen(FakeResponse("(f x)".encode("utf-8")))
    assert load_text("https://example.com/p.sexpr", timeout=5) == "(f x)"
    assert requests == [("https://example.com/p.sexpr", 5)]


def test_fetch_through_proxy(fake_urlopen):
    requests = fake_urlopen(FakeResponse(b"(f)"))
    load_text("https://example.com/p", use_proxy=True)
    assert requests[0][0] == "https://api.allorigins.win/raw?url=https%3A%2F%2Fexample.com%2Fp"


def test_fetch_uses_response_charset(fake_urlopen):
    fake_urlopen(FakeResponse("(é)".encode("latin-1"), "text/plain; charset=latin-1"))
    assert load_text("https://example.com/p") == "(é)"


def test_http_error(fake_urlopen):
    error = urllib.error.HTTPError("https://example.com/p", 404, "Not Found",
                                   Message(), io.BytesIO(b"missing"))
    fake_urlopen(error)
    with pytest.raises(LoadError) as info:
        load_text("https://example.com/p")
    assert str(info.value) == "HTTP 404 Not Found: missing"
    assert info.value.hint is None


def test_network_error_suggests_proxy(fake_urlopen):
    fake_urlopen(urllib.error.URLError("connection refused"))
    with pytest.raises(LoadError) as info:
        load_text("https://example.com/p")
    assert "connection refused" in str(info.value)
    assert info.value.hint == PROXY_HINT

    with pytest.raises(LoadError) as info:
        load_text("https://example.com/p", use_proxy=True)
    assert info.value.hint is None


def test_unknown_encoding_is_a_load_error(tmp_path, fake_urlopen):
    path = tmp_path / "doc.sexpr"
    path.write_text("(a)", encoding="utf-8")
    with pytest.raises(LoadError) as info:
        load_text(str(path), encoding="no-such-codec")
    assert str(info.value) == "Unknown encoding: no-such-codec"

    fake_urlopen(FakeResponse(b"(a)", "text/plain"))
    with pytest.raises(LoadError) as info:
        load_text("https://example.com/p", encoding="no-such-codec")
    assert info.value.source == "https://example.com/p"


def test_unknown_response_charset_falls_back(fake_urlopen):
    fake_urlopen(FakeResponse(b"(a)", "text/plain; charset=no-such-codec"))
    assert load_text("https://example.com/p") == "(a)"
