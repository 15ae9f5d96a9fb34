"""Elasticsearch adapter for the federated search service."""

from federated_search.adapters.elasticsearch.executor import ESQueryExecutor, ExecutionOutcome
from federated_search.adapters.elasticsearch.query_translator import ESQueryTranslator

__all__ = ["ESQueryExecutor", "ExecutionOutcome", "ESQueryTranslator"]
