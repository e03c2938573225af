"""
Shared fixtures for the meiliclient test suite.

No test talks to a real Meilisearch server: :class:`FakeMeili` plugs into
:class:`httpx.MockTransport`, answers from a table of canned routes and
records every request it receives.
"""

import json
import sys
import warnings
from pathlib import Path
from typing import Any, Callable, Dict, List, Tuple

import httpx
import pytest

# Filter deprecation warnings from pytest-asyncio; we cannot fix the library.
warnings.filterwarnings(
    "ignore",
    category=DeprecationWarning,
    module="pytest_asyncio",
)

# Ensure the src/ directory is on the import path so that
# meiliclient can be imported without an editable install.
SRC_ROOT = Path(__file__).resolve().parent.parent / "src"
sys.path.insert(0, str(SRC_ROOT))

from meiliclient import Client, ClientConfig  # noqa: E402

MEILI_ENV = (
    "MEILI_URL",
    "MEILI_API_KEY",
    "MEILI_MASTER_KEY",
    "MEILI_API_KEY_HEADER",
    "MEILI_TIMEOUT",
    "MEILI_TASK_TIMEOUT_MS",
    "MEILI_TASK_INTERVAL_MS",
    "MEILI_BATCH_SIZE",
    "MEILI_LOG_LEVEL",
)


# =============================================================================
# Fake server
# =============================================================================

def _json_answer(status: int, body: Any) -> Callable[[httpx.Request], httpx.Response]:
    return lambda request: httpx.Response(status, json=body)


Answer = Callable[[httpx.Request], httpx.Response]


class FakeMeili:
    """
    Route table for :class:`httpx.MockTransport`.

    ``route(method, path, ...)`` registers a JSON answer.  Registering a
    list of answers for one route plays them in order and then repeats
    the last one, which is how task polling sequences are simulated.
    Unknown routes answer 404 ``not_found``.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], List[Answer]] = {}
        self.requests: List[httpx.Request] = []

    def route(self, method: str, path: str, json_body: Any = None, status: int = 200,
              *, sequence: List[Any] | None = None, handler: Callable | None = None):
        key = (method.upper(), path)
        if handler is not None:
            self.routes[key] = [handler]
        elif sequence is not None:
            self.routes[key] = [_json_answer(status, body) for body in sequence]
        else:
            self.routes[key] = [_json_answer(status, json_body)]
        return self

    def error(self, method: str, path: str, status: int, code: str, message: str = "boom"):
        return self.route(method, path, {
            "message": message,
            "code": code,
            "type": "invalid_request",
            "link": f"https://docs.meilisearch.com/errors#{code}",
        }, status=status)

    def task(self, uid: int, status: str = "succeeded", index_uid: str = "movies",
             error: Dict[str, Any] | None = None, type_: str = "documentAdditionOrUpdate"):
        body = {"uid": uid, "indexUid": index_uid, "status": status, "type": type_,
                "enqueuedAt": "2024-01-01T00:00:00.123456789Z"}
        if error is not None:
            body["error"] = error
        return body

    # ── Transport ─────────────────────────────────────────────────

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        answers = self.routes.get((request.method, request.url.path))
        if not answers:
            return httpx.Response(404, json={
                "message": f"no route {request.method} {request.url.path}",
                "code": "not_found",
                "type": "invalid_request",
            })
        answer = answers.pop(0) if len(answers) > 1 else answers[0]
        return answer(request)

    # ── Inspection ────────────────────────────────────────────────

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]


def body_of(request: httpx.Request) -> Any:
    """Decoded JSON body of a recorded request."""
    return json.loads(request.content) if request.content else None


def enqueued(task_uid: int, type_: str = "documentAdditionOrUpdate", index_uid: str = "movies"):
    """A ``202 Accepted`` task summary."""
    return {"taskUid": task_uid, "indexUid": index_uid, "status": "enqueued",
            "type": type_, "enqueuedAt": "2024-01-01T00:00:00Z"}


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's MEILI_* variables out of every test."""
    for name in MEILI_ENV:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fake() -> FakeMeili:
    return FakeMeili()


@pytest.fixture
def config() -> ClientConfig:
    """ClientConfig with fast polling so wait tests finish quickly."""
    return ClientConfig(
        url="http://meili.test:7700",
        api_key="masterKey",
        task_timeout_ms=500,
        task_interval_ms=1,
        batch_size=2,
    )


@pytest.fixture
def http_client(fake) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(fake))


@pytest.fixture
def client(config, http_client) -> Client:
    """Client wired to the fake server."""
    c = Client(config=config, http_client=http_client)
    yield c
    http_client.close()
