"""
Pytest configuration and shared fixtures.
"""

import threading
from typing import Any, Callable, Dict, List, Optional
from unittest.mock import MagicMock

import pytest
from elasticsearch.exceptions import ApiError

from federated_search.config import SearchSettings
from federated_search.core.field_overrides import FieldOverrideCache
from federated_search.orchestrator import SearchOrchestrator

# ============================================================
# Fake Elasticsearch
# ============================================================


class FakeElasticsearch:
    """
    In-memory stand-in for ``elasticsearch.Elasticsearch``.

    Responses are either queued (consumed in call order) or produced by a
    handler receiving ``(index, body)``. A queued exception is raised.
    """

    def __init__(self, handler: Optional[Callable[[str, Dict[str, Any]], Any]] = None):
        self.handler = handler
        self.queue: List[Any] = []
        self.calls: List[Dict[str, Any]] = []
        self.info_response: Any = {"cluster_name": "test"}
        self._lock = threading.Lock()

    def push(self, *responses: Any) -> "FakeElasticsearch":
        self.queue.extend(responses)
        return self

    def search(self, *, index: str, **body: Any) -> Any:
        with self._lock:
            self.calls.append({"index": index, "body": body})
            if self.handler is not None:
                response = self.handler(index, body)
            elif self.queue:
                response = self.queue.pop(0)
            else:
                response = hits_response([])
        if isinstance(response, Exception):
            raise response
        return response

    def info(self) -> Any:
        if isinstance(self.info_response, Exception):
            raise self.info_response
        return self.info_response


def hits_response(
    hits: List[Dict[str, Any]], aggregations: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """A successful search response body."""
    body: Dict[str, Any] = {
        "took": 3,
        "timed_out": False,
        "_shards": {"total": 1, "successful": 1, "skipped": 0, "failed": 0},
        "hits": {
            "total": {"value": len(hits), "relation": "eq"},
            "max_score": 1.0 if hits else None,
            "hits": hits,
        },
    }
    if aggregations is not None:
        body["aggregations"] = aggregations
    return body


def make_hit(doc_id: str, index: str = "dataset", explanation: bool = True) -> Dict[str, Any]:
    hit: Dict[str, Any] = {
        "_index": index,
        "_id": doc_id,
        "_score": 1.5,
        "_source": {"title": f"Document {doc_id}"},
    }
    if explanation:
        hit["_explanation"] = {"value": 1.5, "description": "sum of:", "details": []}
    return hit


def api_error(status: int, body: Dict[str, Any]) -> ApiError:
    """An ApiError carrying ``body`` as the backend's error body."""
    return ApiError("search_phase_execution_exception", meta=MagicMock(status=status), body=body)


def fielddata_error(field: str, index: str = "dataset") -> ApiError:
    reason = (
        f"Fielddata is disabled on [{field}] in [{index}]. Text fields are not "
        "optimised for operations that require per-document field data like "
        "aggregations and sorting, so these operations are disabled by default."
    )
    return api_error(
        400,
        {
            "error": {
                "root_cause": [
                    {"type": "illegal_argument_exception", "reason": reason, "index": index}
                ],
                "type": "search_phase_execution_exception",
                "reason": "all shards failed",
                "phase": "query",
            },
            "status": 400,
        },
    )


# ============================================================
# Recording explanation sink
# ============================================================


class RecordingSink:
    """Explanation sink that keeps what it was given."""

    def __init__(self, enabled: bool = True):
        self._enabled = enabled
        self.forwarded: List[Any] = []

    @property
    def enabled(self) -> bool:
        return self._enabled

    def forward(self, payload: Dict[str, Any], query: Any):
        self.forwarded.append((payload, query))


# ============================================================
# Fixtures
# ============================================================


@pytest.fixture
def fake_es():
    """Provide an empty fake Elasticsearch client."""
    return FakeElasticsearch()


@pytest.fixture
def field_overrides():
    """Provide a fresh field-override cache."""
    return FieldOverrideCache()


@pytest.fixture
def settings():
    """Settings with small page sizes."""
    return SearchSettings(
        page_size=10,
        aggregation_size=20,
        similar_size=3,
        filter_bucket_size=50,
    )


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def orchestrator(fake_es, settings, field_overrides, sink):
    """Orchestrator wired to the fake client and recording sink."""
    return SearchOrchestrator(
        fake_es, settings=settings, field_overrides=field_overrides, explanation_sink=sink
    )
