"""
Shared data models for the federated search service.

These mirror the request shapes accepted from callers and the response
shapes returned by the search backend.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Query(BaseModel):
    """
    A caller's search request.

    One instance drives translation for every entity type in a fan-out, so it
    is frozen once validated.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    query_string: str = Field("", alias="query")
    filters: Dict[str, Any] = Field(default_factory=dict)
    aggregations: List[Any] = Field(default_factory=list, alias="aggs")
    ids: List[str] = Field(default_factory=list)

    @field_validator("query_string", mode="before")
    @classmethod
    def _none_is_blank(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("filters", mode="before")
    @classmethod
    def _none_is_empty_mapping(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("aggregations", "ids", mode="before")
    @classmethod
    def _none_is_empty_list(cls, value: Any) -> Any:
        return [] if value is None else value

    def is_empty(self) -> bool:
        """True when no part of the query was supplied."""
        return not (self.query_string or self.filters or self.aggregations or self.ids)


class Hit(BaseModel):
    """A single document returned by the backend."""

    model_config = ConfigDict(populate_by_name=True)

    index: Optional[str] = Field(None, alias="_index")
    id: str = Field("", alias="_id")
    score: Optional[float] = Field(None, alias="_score")
    source: Dict[str, Any] = Field(default_factory=dict, alias="_source")
    highlight: Optional[Dict[str, List[str]]] = None
    explanation: Optional[Dict[str, Any]] = Field(None, alias="_explanation")
    sort: Optional[List[Any]] = None


class HitsField(BaseModel):
    """The ``hits`` envelope of a search response."""

    total: Dict[str, Any] = Field(default_factory=dict)
    max_score: Optional[float] = None
    # None means the backend sent no hits at all, which is how failed
    # queries are told apart from queries that matched nothing.
    hits: Optional[List[Hit]] = None

    @field_validator("total", mode="before")
    @classmethod
    def _legacy_total(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, int):
            return {"value": value, "relation": "eq"}
        return value


class BackendResult(BaseModel):
    """Search response in the shape the backend returns it."""

    model_config = ConfigDict(populate_by_name=True)

    took: int = 0
    timed_out: bool = False
    shards: Dict[str, Any] = Field(default_factory=dict, alias="_shards")
    hits: HitsField = Field(default_factory=HitsField)
    aggregations: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("aggregations", mode="before")
    @classmethod
    def _none_is_empty_mapping(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def has_hits(self) -> bool:
        return self.hits.hits is not None

    def to_response(self) -> Dict[str, Any]:
        """Serialize using the backend's wire names."""
        return self.model_dump(by_alias=True)


class RootCause(BaseModel):
    """One entry of ``error.root_cause`` in a backend error body."""

    model_config = ConfigDict(extra="allow")

    type: str = ""
    reason: str = ""
    index: str = ""


class ErrorDetail(BaseModel):
    model_config = ConfigDict(extra="allow")

    root_cause: List[RootCause] = Field(default_factory=list)


class ErrorEnvelope(BaseModel):
    """Error body returned by the backend when a query fails."""

    model_config = ConfigDict(extra="allow")

    error: ErrorDetail = Field(default_factory=ErrorDetail)
    status: Optional[int] = None

    @classmethod
    def from_body(cls, body: Any) -> Optional["ErrorEnvelope"]:
        """
        Parse a raw backend body, returning None when it is not an error body.

        Args:
            body: Decoded JSON body of a failed or empty backend response

        Returns:
            Parsed envelope, or None if the body has no structured error
        """
        if not isinstance(body, dict) or not isinstance(body.get("error"), dict):
            return None
        try:
            return cls.model_validate(body)
        except ValueError:
            return None

    @property
    def reasons(self) -> List[str]:
        return [cause.reason for cause in self.error.root_cause if cause.reason]


class FilterRequest(BaseModel):
    """Request for the filter-listing endpoint: ``{filters: [{type, keys}]}``."""

    filters: List[Any] = Field(default_factory=list)

    @field_validator("filters", mode="before")
    @classmethod
    def _none_is_empty_list(cls, value: Any) -> Any:
        return [] if value is None else value


class FilterListing(BaseModel):
    """Resolved filter buckets, one entry per successful ``(type, keys)`` pair."""

    filters: List[Dict[str, Any]] = Field(default_factory=list)


class SimilarSearch(BaseModel):
    """Request for the similar-datasets endpoint."""

    id: str
