"""
Abstract interfaces for the pieces the orchestrator is wired from.

These protocols keep the translation, execution and forwarding layers
swappable, so tests can run them against in-memory fakes.
"""

from typing import Any, Callable, Dict, Optional, Protocol

from federated_search.core.entities import EntityProfile
from federated_search.core.models import BackendResult, ErrorEnvelope, Query


class ISearchClient(Protocol):
    """
    The subset of the Elasticsearch client the service relies on.

    ``search`` receives the query body unpacked as keyword arguments,
    the way ``elasticsearch.Elasticsearch.search`` accepts it.
    """

    def search(self, *, index: str, **body: Any) -> Any:
        ...

    def info(self) -> Any:
        ...


class IQueryTranslator(Protocol):
    """
    Translate a caller's query into one backend query document.
    """

    def translate(self, query: Query, profile: EntityProfile) -> Dict[str, Any]:
        """
        Build the backend query body for one entity type.

        Args:
            query: The caller's query
            profile: Entity type being searched

        Returns:
            Backend-ready query document (size, query, highlight, explain,
            post_filter, aggs and optional sort)
        """
        ...


class IQueryExecutor(Protocol):
    """
    Execute backend queries with the one-shot field-override retry.
    """

    def search(
        self, index: str, build_query: Callable[[], Dict[str, Any]]
    ) -> "IExecutionOutcome":
        ...

    def aggregate(
        self, index: str, build_query: Callable[[], Dict[str, Any]]
    ) -> "IExecutionOutcome":
        ...


class IExecutionOutcome(Protocol):
    result: BackendResult
    error: Optional[ErrorEnvelope]
    attempts: int


class IExplanationSink(Protocol):
    """Receives score explanations without blocking the request path."""

    @property
    def enabled(self) -> bool:
        ...

    def forward(self, payload: Dict[str, Any], query: Query) -> Any:
        ...
