"""
Build backend filter clauses from caller-supplied filter values.

A filter value's shape depends on its key: date-range keys take a
``[from, to]`` pair, numeric-range keys take ``{from, to, includeUnreported}``
and every other key takes a list of terms. Values are validated into one of
three variants at this boundary so the rest of the translation never has to
inspect raw shapes.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, ValidationError

from federated_search.core.exceptions import FilterShapeError

logger = logging.getLogger(__name__)

# Logical key -> (field holding the range start, field holding the range end)
DATE_RANGE_FIELDS: Dict[str, Tuple[str, str]] = {
    "dateRange": ("startDate", "endDate"),
    "publicationDate": ("publicationDate", "publicationDate"),
}
NUMERIC_RANGE_KEYS = ("populationSize",)

# Stored in numeric-range fields when the value was not reported.
UNREPORTED_SENTINEL = -1

Scalar = Union[StrictBool, int, float, str]


class TermsFilter(BaseModel):
    """Match any of the listed values exactly."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["terms"] = "terms"
    key: str
    values: List[Scalar]

    def to_clause(self) -> Dict[str, Any]:
        return {
            "bool": {"should": [{"term": {self.key: value}} for value in self.values]}
        }


class DateRangeFilter(BaseModel):
    """Documents whose date span overlaps ``[start, end]``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["date_range"] = "date_range"
    key: str
    start: Union[str, int, float]
    end: Union[str, int, float]

    def to_clause(self) -> Dict[str, Any]:
        start_field, end_field = DATE_RANGE_FIELDS[self.key]
        return {
            "bool": {
                "must": [
                    {"range": {start_field: {"lte": self.end}}},
                    {"range": {end_field: {"gte": self.start}}},
                ]
            }
        }


class NumericRangeFilter(BaseModel):
    """Values in ``[from, to]``, optionally also matching unreported values."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: Literal["numeric_range"] = "numeric_range"
    key: str
    lower: Optional[float] = Field(None, alias="from")
    upper: Optional[float] = Field(None, alias="to")
    include_unreported: StrictBool = Field(False, alias="includeUnreported")

    def to_clause(self) -> Dict[str, Any]:
        bounds: Dict[str, Any] = {}
        if self.lower is not None:
            bounds["gte"] = self.lower
        if self.upper is not None:
            bounds["lte"] = self.upper
        range_clause = {"range": {self.key: bounds}}

        if self.include_unreported:
            return {
                "bool": {
                    "should": [
                        range_clause,
                        {"term": {self.key: UNREPORTED_SENTINEL}},
                    ]
                }
            }
        return {"bool": {"must": [range_clause]}}


FilterValue = Union[TermsFilter, DateRangeFilter, NumericRangeFilter]


def parse_filter_value(key: str, raw: Any) -> FilterValue:
    """
    Validate a raw filter value into the variant its key calls for.

    Args:
        key: Filter key (field name or one of the recognised range keys)
        raw: Value as received from the caller

    Returns:
        The validated filter variant

    Raises:
        FilterShapeError: If the value does not have the expected shape
    """
    try:
        if key in DATE_RANGE_FIELDS:
            if not isinstance(raw, (list, tuple)) or len(raw) != 2:
                raise FilterShapeError(key, raw, "a [from, to] pair")
            return DateRangeFilter(key=key, start=raw[0], end=raw[1])

        if key in NUMERIC_RANGE_KEYS:
            if not isinstance(raw, dict):
                raise FilterShapeError(key, raw, "an object {from, to, includeUnreported}")
            return NumericRangeFilter(key=key, **raw)

        if not isinstance(raw, (list, tuple)):
            raise FilterShapeError(key, raw, "a list of terms")
        return TermsFilter(key=key, values=list(raw))
    except (ValidationError, TypeError) as e:
        raise FilterShapeError(key, raw, f"a valid value ({e})") from e


@dataclass(frozen=True)
class FilterClause:
    """A built filter clause tagged with the filter key it came from."""

    key: str
    clause: Dict[str, Any]


class FilterClauseBuilder:
    """
    Turns one entity type's filter bucket into backend filter clauses.

    Clauses are AND'ed across keys by the caller; values of a single terms
    key are OR'ed inside its clause. Malformed entries are logged and
    skipped rather than failing the whole query.
    """

    def build(self, bucket: Any) -> List[FilterClause]:
        """
        Build one clause per well-formed ``(key, value)`` pair.

        Args:
            bucket: ``Query.filters[<entity bucket>]``, expected to be a mapping

        Returns:
            Filter clauses in the bucket's key order
        """
        if not bucket:
            return []
        if not isinstance(bucket, dict):
            logger.debug("Ignoring filters %r: expected a mapping of key to value", bucket)
            return []

        clauses: List[FilterClause] = []
        for key, raw in bucket.items():
            try:
                value = parse_filter_value(key, raw)
            except FilterShapeError as e:
                logger.debug("Skipping filter: %s", e)
                continue
            clauses.append(FilterClause(key=key, clause=value.to_clause()))
        return clauses
