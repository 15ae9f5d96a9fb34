"""
Filter listing: the available values for UI filter controls.

For each requested ``(type, keys)`` pair an aggregation-only query is run
against the type's index and just the bucket payload is returned. Pairs
that fail or return nothing are left out; partial results are normal.
"""

import logging
from typing import Any, Dict, List, Optional

from federated_search.core.entities import filter_type_index
from federated_search.core.interfaces import IQueryExecutor
from federated_search.core.models import FilterListing, FilterRequest
from federated_search.query.aggregations import AggregationBuilder
from federated_search.query.filter_builder import DATE_RANGE_FIELDS

logger = logging.getLogger(__name__)


class FilterListingService:
    """Resolves filter buckets through the same retry protocol as searches."""

    def __init__(
        self,
        executor: IQueryExecutor,
        aggregation_builder: AggregationBuilder,
        bucket_size: int,
    ):
        """
        Args:
            executor: Executes aggregation queries with the field-override retry
            aggregation_builder: Builds the aggregation clause for each key
            bucket_size: Number of distinct values listed for terms filters
        """
        self.executor = executor
        self.aggregation_builder = aggregation_builder
        self.bucket_size = bucket_size

    def list_filters(self, request: FilterRequest) -> FilterListing:
        """
        Resolve every requested filter.

        Args:
            request: ``{filters: [{type, keys}, ...]}``

        Returns:
            ``{filters: [{<type>: {<keys>: <buckets>}}, ...]}`` in request
            order, for the pairs that resolved
        """
        resolved: List[Dict[str, Any]] = []
        for entry in request.filters:
            filter_data = self._resolve(entry)
            if filter_data is not None:
                resolved.append(filter_data)
        return FilterListing(filters=resolved)

    def _resolve(self, entry: Any) -> Optional[Dict[str, Any]]:
        if not isinstance(entry, dict):
            logger.debug("Filter %r not recognised", entry)
            return None

        filter_type = entry.get("type")
        filter_key = entry.get("keys")
        if not isinstance(filter_type, str) or not filter_type:
            logger.debug("Filter type in %r not recognised", entry)
            return None
        if not isinstance(filter_key, str) or not filter_key:
            logger.debug("Filter keys in %r not recognised", entry)
            return None

        outcome = self.executor.aggregate(
            filter_type_index(filter_type),
            lambda: self.aggregation_builder.listing_query(filter_key, self.bucket_size),
        )
        aggregations = outcome.result.aggregations

        if not aggregations:
            if outcome.error is not None and outcome.error.reasons:
                logger.warning(
                    "Elastic returned error for filter: %s - %s: %s",
                    filter_type,
                    filter_key,
                    outcome.error.reasons[0],
                )
            else:
                logger.warning(
                    "No aggregations returned for filter: %s - %s", filter_type, filter_key
                )
            return None

        if filter_key not in DATE_RANGE_FIELDS:
            return {filter_type: aggregations}

        buckets = []
        for bound in ("startDate", "endDate"):
            value = aggregation_value(aggregations, bound)
            if value is None:
                logger.warning(
                    "No %s aggregation returned for filter: %s - %s",
                    bound,
                    filter_type,
                    filter_key,
                )
                return None
            buckets.append({"key": bound, "value": value})

        return {filter_type: {filter_key: {"buckets": buckets}}}


def aggregation_value(aggregations: Dict[str, Any], key: str) -> Optional[str]:
    """
    Read a min/max aggregation value as text.

    Prefers the backend's formatted ``value_as_string``; falls back to the
    raw ``value``. Returns None when neither is present.
    """
    agg = aggregations.get(key)
    if not isinstance(agg, dict):
        return None

    formatted = agg.get("value_as_string")
    if isinstance(formatted, str) and formatted:
        return formatted

    value = agg.get("value")
    if value is None:
        return None
    return str(value)
