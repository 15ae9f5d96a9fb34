"""
Elasticsearch query translator.

Converts a caller's query into the Elasticsearch DSL body for one entity type.
"""

from typing import Any, Dict, List, Optional

from federated_search.core.entities import FUZZINESS, EntityProfile
from federated_search.core.models import Query
from federated_search.query.aggregations import AggregationBuilder
from federated_search.query.filter_builder import FilterClauseBuilder

HIGHLIGHT_OPTIONS = {
    "boundary_scanner": "sentence",
    "fragment_size": 0,
    "no_match_size": 0,
}


class ESQueryTranslator:
    """
    Translates queries to Elasticsearch DSL.

    Implements the IQueryTranslator interface for Elasticsearch.
    """

    def __init__(
        self,
        aggregation_builder: AggregationBuilder,
        page_size: int,
        filter_builder: Optional[FilterClauseBuilder] = None,
    ):
        """
        Initialize Elasticsearch query translator.

        Args:
            aggregation_builder: Builds the faceted aggregation section
            page_size: Number of hits requested per search
            filter_builder: Builds post-filter clauses from filter values
        """
        self.aggregation_builder = aggregation_builder
        self.page_size = page_size
        self.filter_builder = filter_builder or FilterClauseBuilder()

    def translate(self, query: Query, profile: EntityProfile) -> Dict[str, Any]:
        """
        Build the search body for one entity type.

        Args:
            query: The caller's query
            profile: Entity type being searched

        Returns:
            Elasticsearch DSL body
        """
        filter_clauses = self.filter_builder.build(query.filters.get(profile.filter_bucket))

        elastic_query: Dict[str, Any] = {
            "size": self.page_size,
            "query": self._main_query(query, profile),
        }

        if profile.highlight_fields:
            elastic_query["highlight"] = {
                "fields": {
                    field: dict(HIGHLIGHT_OPTIONS) for field in profile.highlight_fields
                }
            }

        elastic_query["explain"] = True
        elastic_query["post_filter"] = {
            "bool": {"must": [fc.clause for fc in filter_clauses]}
        }
        elastic_query["aggs"] = self.aggregation_builder.build(
            query.aggregations, filter_clauses, profile.aggregation_type
        )

        if not query.query_string and query.ids:
            elastic_query["sort"] = self._id_order_sort(query.ids)

        return elastic_query

    def _main_query(self, query: Query, profile: EntityProfile) -> Dict[str, Any]:
        if query.query_string:
            return {"bool": {"should": self._match_clauses(query.query_string, profile)}}

        if not query.ids:
            return {
                "function_score": {
                    "query": {"match_all": {}},
                    "random_score": {},
                }
            }

        # Hits are ordered by the sort clause; the random score only breaks ties.
        return {
            "function_score": {
                "query": {
                    "function_score": {
                        "query": {"bool": {"filter": [{"terms": {"_id": list(query.ids)}}]}},
                        "random_score": {},
                    }
                }
            }
        }

    def _match_clauses(self, text: str, profile: EntityProfile) -> List[Dict[str, Any]]:
        """
        Three weighted match clauses, OR'ed by the caller.

        Standard profiles: fuzzy, fuzzy with all terms required, exact phrase.
        Profiles with related-object fields: fuzzy over the related fields,
        boosted fuzzy over the profile's own fields, exact phrase.
        """
        own_fields = list(profile.search_fields)

        fuzzy_fields = list(profile.related_fields) or own_fields
        fuzzy = self._multi_match(text, fuzzy_fields, profile, fuzzy=True)
        strict = self._multi_match(text, own_fields, profile, fuzzy=True)
        if not profile.related_fields:
            strict["multi_match"]["operator"] = "and"
        if profile.and_boost is not None:
            strict["multi_match"]["boost"] = profile.and_boost

        phrase = self._multi_match(text, own_fields, profile, fuzzy=False)
        phrase["multi_match"]["type"] = "phrase"
        phrase["multi_match"]["boost"] = profile.phrase_boost

        return [fuzzy, strict, phrase]

    @staticmethod
    def _multi_match(
        text: str, fields: List[str], profile: EntityProfile, fuzzy: bool
    ) -> Dict[str, Any]:
        clause: Dict[str, Any] = {"query": text, "fields": fields}
        if fuzzy:
            clause["fuzziness"] = FUZZINESS
        if profile.analyzer:
            clause["analyzer"] = profile.analyzer
        return {"multi_match": clause}

    @staticmethod
    def _id_order_sort(ids: List[str]) -> List[Dict[str, Any]]:
        """Order hits by each id's position in the caller's id list."""
        return [
            {
                "_script": {
                    "type": "number",
                    "script": {
                        "lang": "painless",
                        "source": "params.order.indexOf(doc['_id'].value)",
                        "params": {"order": list(ids)},
                    },
                    "order": "asc",
                }
            }
        ]

    @staticmethod
    def similar_query(doc_id: str, index: str, size: int) -> Dict[str, Any]:
        """``more_like_this`` query for documents similar to ``doc_id``."""
        return {
            "size": size,
            "query": {"more_like_this": {"like": [{"_index": index, "_id": doc_id}]}},
        }
