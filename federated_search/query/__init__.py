"""Query building and translation components."""

from federated_search.query.aggregations import AggregationBuilder, population_ranges
from federated_search.query.filter_builder import FilterClause, FilterClauseBuilder, parse_filter_value
from federated_search.query.translator import QueryTranslator

__all__ = [
    "AggregationBuilder",
    "population_ranges",
    "FilterClause",
    "FilterClauseBuilder",
    "parse_filter_value",
    "QueryTranslator",
]
