import pytest
import requests
from requests.structures import CaseInsensitiveDict

from app import create_app
from settings import Settings


class FakeUpstream:
    """Stands in for a streamed ``requests.Response``."""

    def __init__(self, status_code=200, chunks=(), headers=None, fail_after=None, fail_on_read=False):
        self.status_code = status_code
        self.chunks = list(chunks)
        self.headers = CaseInsensitiveDict(headers or {})
        self.fail_after = fail_after
        self.fail_on_read = fail_on_read
        self.closed = False
        self.chunk_sizes = []

    def iter_content(self, chunk_size=1):
        self.chunk_sizes.append(chunk_size)
        for i, chunk in enumerate(self.chunks):
            if self.fail_after is not None and i >= self.fail_after:
                raise requests.ConnectionError("connection reset")
            yield chunk

    @property
    def content(self):
        if self.fail_on_read:
            raise requests.ConnectionError("read failed")
        return b"".join(self.chunks)

    def close(self):
        self.closed = True


class FakeSession:
    def __init__(self):
        self.headers = {}
        self.calls = []
        self.responses = {}
        self.error = None

    def respond(self, url, upstream):
        self.responses[url] = upstream
        return upstream

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.responses[url]


@pytest.fixture
def settings():
    return Settings(
        host="http://upstream.test:80",
        username="alice",
        password="s3cret",
        user_agent="TestAgent/1.0",
        referer="http://referer.test/",
        timeout=5.0,
        chunk_size=4,
    )


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def client(settings, session):
    app = create_app(settings, session=session)
    return app.test_client()
