"""Shared pytest fixtures for solr-cursorstream tests."""

import pytest
from httpx import Request, Response

from solr_cursorstream.config import SolrSettings
from solr_cursorstream.transport import HttpxTransport

SOLR_CORE = "http://solr.test/solr/books"
SELECT_URL = f"{SOLR_CORE}/select"


class FakeSolr:
    """
    respx side effect that serves cursorMark pages over a fixed doc list.

    Cursors look like "AoE<offset>". By default it behaves like Solr:
    the last non-empty page still gets a new cursor and the end is
    signalled by an empty page echoing the cursor it was sent. With
    end_on_last_page=True the page that reaches the end echoes the
    cursor instead, saving the extra request.
    """

    def __init__(self, docs, end_on_last_page=False):
        self.docs = docs
        self.end_on_last_page = end_on_last_page
        self.requests: list[Request] = []

    @property
    def cursors(self) -> list[str]:
        return [r.url.params["cursorMark"] for r in self.requests]

    def __call__(self, request: Request) -> Response:
        self.requests.append(request)
        cursor = request.url.params["cursorMark"]
        rows = int(request.url.params["rows"])
        start = 0 if cursor == "*" else int(cursor.removeprefix("AoE"))

        page = self.docs[start:start + rows]
        end = start + len(page)
        if not page or (self.end_on_last_page and end >= len(self.docs)):
            next_cursor = cursor
        else:
            next_cursor = f"AoE{end}"

        return Response(
            200,
            json={
                "responseHeader": {"status": 0, "QTime": 1},
                "response": {"numFound": len(self.docs), "start": 0, "docs": page},
                "nextCursorMark": next_cursor,
            },
        )


def make_docs(n: int) -> list[dict]:
    return [{"id": f"doc-{i:03d}", "title": f"Title {i}"} for i in range(n)]


def solr_body(docs, cursor, num_found=None) -> dict:
    return {
        "response": {
            "numFound": len(docs) if num_found is None else num_found,
            "docs": docs,
        },
        "nextCursorMark": cursor,
    }


@pytest.fixture
def solr_core():
    """URL of the mocked Solr core."""
    return SOLR_CORE


@pytest.fixture
def select_url():
    """URL of the mocked select handler."""
    return SELECT_URL


@pytest.fixture
def transport():
    """HttpxTransport that retries without sleeping."""
    t = HttpxTransport(max_retries=2, backoff_factor=0)
    yield t
    t.close()


@pytest.fixture
def mock_settings():
    """Return settings pointing at the mocked core."""
    return SolrSettings(url=SOLR_CORE, batch_size=2)
