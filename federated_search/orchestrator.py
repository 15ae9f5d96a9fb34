"""
Search orchestrator - main entry point.

Coordinates all components to provide a unified search interface.
"""

import logging
from typing import Any, Dict, Optional

from elasticsearch import Elasticsearch
from elasticsearch.exceptions import ApiError, TransportError

from federated_search.adapters.elasticsearch import ESQueryExecutor, ESQueryTranslator
from federated_search.config import SearchSettings
from federated_search.core.entities import DATASET, EntityProfile, get_profile
from federated_search.core.field_overrides import FieldOverrideCache
from federated_search.core.interfaces import IExplanationSink, ISearchClient
from federated_search.core.models import (
    BackendResult,
    ErrorEnvelope,
    FilterListing,
    FilterRequest,
    Query,
)
from federated_search.execution.executor import QueryExecutor
from federated_search.execution.explanation import ExplanationForwarder
from federated_search.execution.filter_listing import FilterListingService
from federated_search.execution.result_formatter import ResultFormatter
from federated_search.query.aggregations import AggregationBuilder
from federated_search.query.translator import QueryTranslator

logger = logging.getLogger(__name__)


class SearchOrchestrator:
    """
    Main orchestrator for federated search.

    Coordinates query translation, execution with field-override retries,
    multi-entity fan-out, result formatting and filter listing.
    """

    def __init__(
        self,
        es_client: ISearchClient,
        settings: Optional[SearchSettings] = None,
        field_overrides: Optional[FieldOverrideCache] = None,
        explanation_sink: Optional[IExplanationSink] = None,
    ):
        """
        Initialize search orchestrator.

        Args:
            es_client: Elasticsearch client
            settings: Service settings (defaults are used when omitted)
            field_overrides: Field-override cache shared by every search;
                a fresh one is created when omitted
            explanation_sink: Receives score explanations; built from the
                settings when omitted
        """
        self.es_client = es_client
        self.settings = settings or SearchSettings()
        self.field_overrides = field_overrides or FieldOverrideCache()

        if explanation_sink is None:
            explanation_sink = ExplanationForwarder(
                base_url=self.settings.explanation_url,
                user=self.settings.explanation_user,
                password=self.settings.explanation_password,
                destination_table=self.settings.explanation_table,
            )

        self.aggregation_builder = AggregationBuilder(
            self.field_overrides, bucket_size=self.settings.aggregation_size
        )
        self.es_translator = ESQueryTranslator(
            self.aggregation_builder, page_size=self.settings.page_size
        )
        self.query_translator = QueryTranslator(self.es_translator)
        self.es_executor = ESQueryExecutor(es_client, self.field_overrides)
        self.result_formatter = ResultFormatter(explanation_sink)
        self.query_executor = QueryExecutor(
            self._search_profile, branch_timeout=self.settings.branch_timeout
        )
        self.filter_listing = FilterListingService(
            self.es_executor,
            self.aggregation_builder,
            bucket_size=self.settings.filter_bucket_size,
        )

    @classmethod
    def from_elasticsearch(
        cls, settings: Optional[SearchSettings] = None
    ) -> "SearchOrchestrator":
        """
        Create orchestrator connected to the configured Elasticsearch host.

        Args:
            settings: Service settings; read from the environment when omitted

        Returns:
            Configured SearchOrchestrator
        """
        settings = settings or SearchSettings.from_env()

        client_kwargs: Dict[str, Any] = {"hosts": [settings.elastic_host]}
        if settings.elastic_user:
            client_kwargs["basic_auth"] = (
                settings.elastic_user,
                settings.elastic_password or "",
            )

        return cls(es_client=Elasticsearch(**client_kwargs), settings=settings)

    def search(self, entity_type: str, query: Query) -> BackendResult:
        """
        Search a single entity type.

        Args:
            entity_type: Result key of the entity type, e.g. ``"dataset"``
            query: The caller's query

        Returns:
            Formatted result; empty when the backend failed

        Raises:
            UnknownEntityTypeError: If the entity type is not configured
        """
        return self._search_profile(query, get_profile(entity_type))

    def search_all(self, query: Query) -> Dict[str, BackendResult]:
        """
        Search every entity type concurrently.

        Returns:
            Mapping of entity type name to formatted result
        """
        return self.query_executor.execute(query)

    def list_filters(self, request: FilterRequest) -> FilterListing:
        """List the available values for each requested filter."""
        return self.filter_listing.list_filters(request)

    def similar(self, doc_id: str, profile: EntityProfile = DATASET) -> BackendResult:
        """
        Find documents similar to ``doc_id``.

        Args:
            doc_id: Id of the reference document
            profile: Entity type to search (datasets by default)

        Returns:
            Raw backend result; empty when the backend failed
        """
        elastic_query = self.es_translator.similar_query(
            doc_id, profile.index, self.settings.similar_size
        )
        result, _ = self.es_executor.execute_once(profile.index, elastic_query)
        if result is None or not result.has_hits:
            logger.warning("Hits from elastic are null, query may be malformed")
            logger.debug("Null result elastic query: %s", elastic_query)
            return result or BackendResult()
        return result

    def health(self) -> Dict[str, Any]:
        """Backend status plus this service's own status."""
        status: Dict[str, Any] = {}
        try:
            self.es_client.info()
            status["elastic_status"] = 200
        except ApiError as e:
            status["elastic_status"] = e.meta.status
            envelope = ErrorEnvelope.from_body(e.body)
            if envelope is not None and envelope.error.root_cause:
                status["elastic_error"] = envelope.error.root_cause[0].type
        except TransportError as e:
            logger.debug("Elastic health check failed: %s", e)
            status["elastic_status"] = None
            status["elastic_error"] = type(e).__name__

        status["search_service_status"] = "OK"
        return status

    def _search_profile(self, query: Query, profile: EntityProfile) -> BackendResult:
        outcome = self.es_executor.search(
            profile.index,
            lambda: self.query_translator.translate(query, profile.name),
        )
        return self.result_formatter.format_result(outcome.result, query, profile)
