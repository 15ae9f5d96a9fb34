"""
Result formatting utilities.

Normalizes backend search responses before they are returned to callers:
aggregation envelopes are flattened to one level and per-hit score
explanations are removed.
"""

import copy
from typing import Any, Dict, Optional

from federated_search.core.entities import EntityProfile
from federated_search.core.interfaces import IExplanationSink
from federated_search.core.models import BackendResult, Query
from federated_search.query.filter_builder import DATE_RANGE_FIELDS


class ResultFormatter:
    """
    Formats backend results into the shape callers receive.

    When an explanation sink is configured, the explanations of entity
    types that support it are handed to the sink before being stripped.
    """

    def __init__(self, explanation_sink: Optional[IExplanationSink] = None):
        """
        Initialize result formatter.

        Args:
            explanation_sink: Optional sink receiving score explanations
        """
        self.explanation_sink = explanation_sink

    def format_result(
        self, result: BackendResult, query: Query, profile: EntityProfile
    ) -> BackendResult:
        """
        Format one entity type's search result.

        Args:
            result: Raw backend result
            query: Query that produced the result
            profile: Entity type that was searched

        Returns:
            A copy of the result with explanations stripped and
            aggregations flattened
        """
        if self._should_forward(query, profile):
            self.explanation_sink.forward(self.explanation_payload(result), query)

        formatted = self.strip_explanations(result)
        formatted.aggregations = self.flatten_aggregations(result.aggregations)
        return formatted

    def _should_forward(self, query: Query, profile: EntityProfile) -> bool:
        return (
            self.explanation_sink is not None
            and self.explanation_sink.enabled
            and profile.supports_explanation
            and not query.is_empty()
        )

    @staticmethod
    def flatten_aggregations(aggregations: Dict[str, Any]) -> Dict[str, Any]:
        """
        Collapse aggregation envelopes to a single level.

        Date-range aggregations are replaced by their ``startDate`` and
        ``endDate`` values at the top level. An aggregation that wraps a
        sub-aggregation under its own name is replaced by that
        sub-aggregation. Anything else passes through unchanged, so the
        result of flattening an already flat mapping is the mapping itself.

        Args:
            aggregations: Aggregations as returned by the backend

        Returns:
            Flattened aggregations; entries that are not objects are dropped
        """
        flattened: Dict[str, Any] = {}

        for key, agg in (aggregations or {}).items():
            if not isinstance(agg, dict):
                continue

            if key in DATE_RANGE_FIELDS:
                for bound in ("startDate", "endDate"):
                    if bound in agg:
                        flattened[bound] = agg[bound]
                continue

            if key in agg:
                flattened[key] = agg[key]
                continue

            flattened[key] = agg

        return flattened

    @staticmethod
    def strip_explanations(result: BackendResult) -> BackendResult:
        """Copy of ``result`` whose hits carry empty explanations."""
        stripped = result.model_copy(deep=True)
        for hit in stripped.hits.hits or []:
            hit.explanation = {}
        return stripped

    @staticmethod
    def explanation_payload(result: BackendResult) -> Dict[str, Any]:
        """Hit ids and explanations only, detached from ``result``."""
        return {
            "hits": {
                "hits": [
                    {"_id": hit.id, "_explanation": copy.deepcopy(hit.explanation)}
                    for hit in result.hits.hits or []
                ]
            }
        }
