"""Search execution, result formatting and filter listing."""

from federated_search.execution.executor import QueryExecutor
from federated_search.execution.explanation import ExplanationForwarder
from federated_search.execution.filter_listing import FilterListingService
from federated_search.execution.result_formatter import ResultFormatter

__all__ = ["QueryExecutor", "ExplanationForwarder", "FilterListingService", "ResultFormatter"]
