"""
Elasticsearch query executor.

Executes Elasticsearch DSL queries and retries once when the backend
rejects an aggregation on an analysed text field.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from elasticsearch.exceptions import ApiError, SerializationError, TransportError
from pydantic import ValidationError

from federated_search.core.field_overrides import (
    FieldOverrideCache,
    fields_needing_keyword,
    keyword_override,
)
from federated_search.core.interfaces import ISearchClient
from federated_search.core.models import BackendResult, ErrorEnvelope

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 2


@dataclass
class ExecutionOutcome:
    """Final state of a (possibly retried) backend call."""

    result: BackendResult
    error: Optional[ErrorEnvelope] = None
    attempts: int = 1
    query: Optional[Dict[str, Any]] = None


class ESQueryExecutor:
    """
    Executes Elasticsearch queries with the field-override retry.

    Each call makes at most two attempts. The second attempt happens only
    when the first failed with a recoverable mapping error that taught the
    field-override cache something new; the query is then rebuilt (never
    patched in place) so it picks up the override.

    Backend trouble never raises out of this class. Transport failures,
    unreadable responses and unrecoverable errors all produce an empty
    result, and the reason is logged.
    """

    def __init__(self, es_client: ISearchClient, field_overrides: FieldOverrideCache):
        """
        Initialize Elasticsearch query executor.

        Args:
            es_client: Elasticsearch client
            field_overrides: Shared field-override cache updated on recoverable errors
        """
        self.es_client = es_client
        self.field_overrides = field_overrides

    def execute_once(
        self, index: str, query: Dict[str, Any]
    ) -> Tuple[Optional[BackendResult], Optional[Dict[str, Any]]]:
        """
        Run a single query.

        Args:
            index: Index to search
            query: Elasticsearch DSL query body

        Returns:
            ``(result, body)``. ``result`` is None when the call failed; ``body``
            is the raw decoded body (an error body on failure) or None when
            nothing readable came back.
        """
        try:
            response = self.es_client.search(index=index, **query)
        except ApiError as e:
            logger.debug("Elastic query on %s failed with status %s", index, e.meta.status)
            return None, self._decode_body(e.body)
        except SerializationError as e:
            logger.debug("Failed to read elastic response from %s: %s", index, e)
            return None, None
        except TransportError as e:
            logger.debug("Failed to execute elastic query on %s: %s", index, e)
            return None, None

        if response is None:
            logger.warning("Elastic returned nil response for index %s", index)
            return None, None

        body = self._decode_body(getattr(response, "body", response))
        if body is None:
            logger.debug("Unreadable elastic response from %s", index)
            return None, None

        try:
            return BackendResult.model_validate(body), body
        except ValidationError as e:
            logger.debug("Unexpected elastic response shape from %s: %s", index, e)
            return None, body

    def search(
        self, index: str, build_query: Callable[[], Dict[str, Any]]
    ) -> ExecutionOutcome:
        """
        Execute a search query, retrying once on a recoverable mapping error.

        Args:
            index: Index to search
            build_query: Builds a fresh query body for each attempt

        Returns:
            Outcome whose result is empty (no hits) when the search failed
        """
        outcome = self._execute_with_retry(
            index,
            build_query,
            failed=lambda result: result is None or not result.has_hits,
        )
        if not outcome.result.has_hits:
            self._log_failed_search(outcome)
        return outcome

    def aggregate(
        self, index: str, build_query: Callable[[], Dict[str, Any]]
    ) -> ExecutionOutcome:
        """
        Execute an aggregation-only query, retrying once on a recoverable mapping error.

        An attempt counts as failed when it produced no aggregations.
        """
        return self._execute_with_retry(
            index,
            build_query,
            failed=lambda result: result is None or not result.aggregations,
        )

    def _execute_with_retry(
        self,
        index: str,
        build_query: Callable[[], Dict[str, Any]],
        failed: Callable[[Optional[BackendResult]], bool],
    ) -> ExecutionOutcome:
        result: Optional[BackendResult] = None
        body: Optional[Dict[str, Any]] = None
        query: Optional[Dict[str, Any]] = None
        attempts = 0

        while attempts < MAX_ATTEMPTS:
            in_effect = self.field_overrides.snapshot()
            query = build_query()
            result, body = self.execute_once(index, query)
            attempts += 1

            if not failed(result) or not body:
                break
            if attempts >= MAX_ATTEMPTS or not self._learn_overrides(body, in_effect):
                break
            logger.debug("Retrying elastic query on %s after updating field override", index)

        return ExecutionOutcome(
            result=result or BackendResult(),
            error=ErrorEnvelope.from_body(body),
            attempts=attempts,
            query=query,
        )

    def _learn_overrides(self, body: Dict[str, Any], in_effect: Dict[str, str]) -> bool:
        """
        Update the field-override cache from a mapping-error body.

        Returns:
            True if the error named a field whose override was not in effect
            when the failing query was built
        """
        envelope = ErrorEnvelope.from_body(body)
        if envelope is None:
            return False

        learned = False
        for field in fields_needing_keyword(envelope.error.root_cause):
            override = keyword_override(field)
            if self.field_overrides.register_keyword(field):
                logger.debug("Updated aggregation field override: %s -> %s", field, override)
            if in_effect.get(field) != override:
                learned = True
        return learned

    @staticmethod
    def _decode_body(body: Any) -> Optional[Dict[str, Any]]:
        if isinstance(body, (bytes, str)):
            try:
                body = json.loads(body)
            except ValueError:
                return None
        return body if isinstance(body, dict) else None

    @staticmethod
    def _log_failed_search(outcome: ExecutionOutcome):
        if outcome.error is not None and outcome.error.reasons:
            logger.warning(
                "Search query returned elastic error: %s", outcome.error.reasons[0]
            )
        else:
            logger.warning("Hits from elastic are null, query may be malformed")
        logger.debug("Null result elastic query: %s", outcome.query)
