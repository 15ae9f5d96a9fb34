"""Core interfaces, models and entity configuration."""

from federated_search.core.entities import (
    ENTITY_PROFILES,
    EntityProfile,
    filter_type_index,
    get_profile,
)
from federated_search.core.field_overrides import FieldOverrideCache
from federated_search.core.exceptions import (
    FederatedSearchError,
    FilterShapeError,
    UnknownEntityTypeError,
)
from federated_search.core.interfaces import (
    IExplanationSink,
    IQueryExecutor,
    IQueryTranslator,
    ISearchClient,
)
from federated_search.core.models import (
    BackendResult,
    ErrorEnvelope,
    FilterListing,
    FilterRequest,
    Hit,
    HitsField,
    Query,
    RootCause,
    SimilarSearch,
)

__all__ = [
    "ENTITY_PROFILES",
    "EntityProfile",
    "filter_type_index",
    "get_profile",
    "FieldOverrideCache",
    "FederatedSearchError",
    "FilterShapeError",
    "UnknownEntityTypeError",
    "IExplanationSink",
    "IQueryExecutor",
    "IQueryTranslator",
    "ISearchClient",
    "BackendResult",
    "ErrorEnvelope",
    "FilterListing",
    "FilterRequest",
    "Hit",
    "HitsField",
    "Query",
    "RootCause",
    "SimilarSearch",
]
