"""
Aggregation clause construction.

Shared by per-entity query translation (faceted aggregations next to the
search hits) and by filter listing (aggregation-only queries that populate
filter controls).
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from federated_search.core.field_overrides import FieldOverrideCache
from federated_search.query.filter_builder import (
    DATE_RANGE_FIELDS,
    NUMERIC_RANGE_KEYS,
    FilterClause,
)

logger = logging.getLogger(__name__)


def population_ranges() -> List[Dict[str, Any]]:
    """
    Buckets for numeric-range aggregations.

    One ``Unreported`` bucket covering the ``-1`` sentinel, then nine
    power-of-ten buckets ``[10^i, 10^(i+1))`` for ``i`` in ``0..8``.
    """
    ranges: List[Dict[str, Any]] = [{"from": -1.0, "to": 1.0, "key": "Unreported"}]
    for i in range(9):
        ranges.append({"from": float(10**i), "to": float(10 ** (i + 1))})
    return ranges


class AggregationBuilder:
    """
    Builds aggregation clauses for date-range, numeric-range and terms keys.

    Terms aggregations read their field name through the field-override
    cache, so a field that the backend rejected as an analysed text field is
    aggregated on its ``.keyword`` sub-field from then on.
    """

    def __init__(self, field_overrides: FieldOverrideCache, bucket_size: int):
        """
        Args:
            field_overrides: Shared field-override cache
            bucket_size: Number of distinct values returned by terms aggregations
        """
        self.field_overrides = field_overrides
        self.bucket_size = bucket_size

    def aggregation_clause(self, key: str, bucket_size: Optional[int] = None) -> Dict[str, Any]:
        """
        Build the inner aggregation clauses for one key.

        Date-range keys produce ``startDate``/``endDate`` min/max clauses,
        numeric-range keys a fixed ``range`` clause, anything else a
        ``terms`` clause on the resolved field name.
        """
        if key in DATE_RANGE_FIELDS:
            start_field, end_field = DATE_RANGE_FIELDS[key]
            return {
                "startDate": {"min": {"field": start_field}},
                "endDate": {"max": {"field": end_field}},
            }

        if key in NUMERIC_RANGE_KEYS:
            return {key: {"range": {"field": key, "ranges": population_ranges()}}}

        return {
            key: {
                "terms": {
                    "field": self.field_overrides.resolve(key),
                    "size": bucket_size if bucket_size is not None else self.bucket_size,
                }
            }
        }

    def build(
        self,
        requests: Iterable[Any],
        filter_clauses: Sequence[FilterClause],
        entity_type: str,
    ) -> Dict[str, Any]:
        """
        Build the ``aggs`` section of a search query.

        Each requested key becomes a filter aggregation wrapping its inner
        clauses. The wrapping filter holds every filter clause except those
        built from the same key, so a facet's own selection never narrows
        its own bucket counts.

        Args:
            requests: ``Query.aggregations`` entries, each ``{type, keys}``
            filter_clauses: Filter clauses already built for this entity type
            entity_type: Aggregation type of the entity being searched

        Returns:
            Mapping of aggregation key to filter aggregation
        """
        aggs: Dict[str, Any] = {}
        wanted_type = entity_type.lower()

        for request in requests:
            if not isinstance(request, dict):
                logger.debug("Skipping aggregation %r: expected an object", request)
                continue

            agg_type = request.get("type")
            if isinstance(agg_type, str) and agg_type.strip():
                if agg_type.strip().lower() != wanted_type:
                    continue

            key = request.get("keys")
            if not isinstance(key, str) or not key:
                logger.debug("Aggregation key in %r not recognised", request)
                continue

            scoped_filters = [fc.clause for fc in filter_clauses if fc.key != key]
            aggs[key] = {
                "filter": {"bool": {"must": scoped_filters}},
                "aggs": self.aggregation_clause(key),
            }

        return aggs

    def listing_query(self, key: str, bucket_size: Optional[int] = None) -> Dict[str, Any]:
        """Aggregation-only query used to list the values of one filter."""
        return {"size": 0, "aggs": self.aggregation_clause(key, bucket_size)}
