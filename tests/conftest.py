import pytest
import requests


def make_response(body: bytes, status_code: int = 200) -> requests.Response:
    res = requests.Response()
    res.status_code = status_code
    res._content = body
    return res


class FakeSession:
    def __init__(self, body: bytes = b"{}", status_code: int = 200, exc=None):
        self.body = body
        self.status_code = status_code
        self.exc = exc
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        if self.exc is not None:
            raise self.exc
        return make_response(self.body, self.status_code)


class ExplodingSession:
    def request(self, method, url, **kwargs):
        raise AssertionError(f"unexpected {method} {url}")


@pytest.fixture
def fake_session():
    return FakeSession


@pytest.fixture
def exploding_session():
    return ExplodingSession()
