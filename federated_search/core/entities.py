"""
Static search configuration for each entity type.

Every entity type is searched against its own index with a fixed, ordered
list of searchable fields. Field lists are constants; they are never derived
from the index mapping at runtime.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from federated_search.core.exceptions import UnknownEntityTypeError

FUZZINESS = "AUTO:5,7"


@dataclass(frozen=True)
class EntityProfile:
    """
    How one entity type is searched.

    Attributes:
        name: Key used for this entity type in multi-entity results
        index: Backend index name
        filter_bucket: Key of this type's filters inside ``Query.filters``
        search_fields: Ordered fields matched by the query string
        related_fields: Fields describing linked objects. When set, the
            fuzzy clause runs over these fields and the boosted clause runs
            over ``search_fields`` without AND semantics.
        analyzer: Optional search analyzer hint passed to every match clause
        and_boost: Boost for the all-terms clause (None means no boost)
        phrase_boost: Boost for the exact-phrase clause
        highlight_fields: Text fields to highlight
        supports_explanation: Whether score explanations may be forwarded
    """

    name: str
    index: str
    filter_bucket: str
    search_fields: Tuple[str, ...]
    related_fields: Tuple[str, ...] = ()
    analyzer: Optional[str] = None
    and_boost: Optional[int] = None
    phrase_boost: int = 2
    highlight_fields: Tuple[str, ...] = ()
    supports_explanation: bool = False

    @property
    def aggregation_type(self) -> str:
        """Name matched (case-insensitively) against ``aggs[].type``."""
        return self.index


DATASET = EntityProfile(
    name="dataset",
    index="dataset",
    filter_bucket="dataset",
    search_fields=(
        "abstract",
        "keywords",
        "description",
        "shortTitle",
        "title",
        "named_entities",
        "datasetDOI",
    ),
    analyzer="medterms_search_analyzer",
    and_boost=2,
    phrase_boost=3,
    highlight_fields=("description", "abstract"),
    supports_explanation=True,
)

TOOL = EntityProfile(
    name="tool",
    index="tool",
    filter_bucket="tool",
    search_fields=(
        "tags",
        "programmingLanguage",
        "name",
        "link",
        "description",
        "resultsInsights",
        "license",
    ),
    highlight_fields=("name", "description"),
)

COLLECTION = EntityProfile(
    name="collection",
    index="collection",
    filter_bucket="collection",
    search_fields=("description", "name", "keywords"),
    related_fields=("datasetTitles", "datasetAbstracts"),
    and_boost=2,
    phrase_boost=3,
    highlight_fields=("description", "name", "keywords"),
)

DATA_USE_REGISTER = EntityProfile(
    name="dataUseRegister",
    index="datauseregister",
    filter_bucket="dataUseRegister",
    search_fields=(
        "projectTitle",
        "laySummary",
        "publicBenefitStatement",
        "technicalSummary",
        "fundersAndSponsors",
        "datasetTitles",
        "keywords",
        "collectionNames",
        "publisherName",
    ),
    highlight_fields=("laySummary",),
)

PUBLICATION = EntityProfile(
    name="publication",
    index="publication",
    filter_bucket="paper",
    search_fields=(
        "title",
        "journalName",
        "abstract",
        "publicationType",
        "authors",
        "datasetTitles",
        "doi",
    ),
    highlight_fields=("title", "abstract"),
)

DATA_PROVIDER = EntityProfile(
    name="dataProvider",
    index="dataprovider",
    filter_bucket="dataProvider",
    search_fields=(
        "name",
        "datasetTitles",
        "geographicLocation",
        "publicationTitles",
        "collectionNames",
        "durTitles",
        "toolNames",
        "teamAliases",
    ),
)

DATA_CUSTODIAN_NETWORK = EntityProfile(
    name="datacustodiannetwork",
    index="datacustodiannetwork",
    filter_bucket="datacustodiannetwork",
    search_fields=("name", "summary"),
    related_fields=(
        "publisherNames",
        "datasetTitles",
        "durTitles",
        "toolNames",
        "publicationTitles",
        "collectionNames",
    ),
    and_boost=2,
    phrase_boost=3,
    highlight_fields=("name", "summary"),
)

ENTITY_PROFILES: Tuple[EntityProfile, ...] = (
    DATASET,
    TOOL,
    COLLECTION,
    DATA_USE_REGISTER,
    PUBLICATION,
    DATA_PROVIDER,
    DATA_CUSTODIAN_NETWORK,
)

_PROFILES_BY_NAME: Dict[str, EntityProfile] = {p.name: p for p in ENTITY_PROFILES}

# Filter-listing requests name types the way the UI does, not by index.
FILTER_TYPE_INDEX_ALIASES: Dict[str, str] = {
    "dataUseRegister": "datauseregister",
    "dataProvider": "dataprovider",
    "paper": "publication",
}


def get_profile(entity_type: str) -> EntityProfile:
    """
    Look up an entity profile by its result key.

    Raises:
        UnknownEntityTypeError: If no profile has that name
    """
    try:
        return _PROFILES_BY_NAME[entity_type]
    except KeyError:
        raise UnknownEntityTypeError(entity_type) from None


def filter_type_index(filter_type: str) -> str:
    """Index queried for a filter-listing ``type``."""
    return FILTER_TYPE_INDEX_ALIASES.get(filter_type, filter_type)
