"""
Query translation coordinator.

Delegates translation to the backend-specific translator.
"""

import logging
from typing import Any, Dict

from federated_search.core.entities import get_profile
from federated_search.core.interfaces import IQueryTranslator
from federated_search.core.models import Query

logger = logging.getLogger(__name__)


class QueryTranslator:
    """
    Coordinates translation from a caller's query to backend queries.

    This class wraps a backend-specific query translator and resolves the
    entity type name to its static search profile.
    """

    def __init__(self, translator: IQueryTranslator):
        """
        Initialize query translator.

        Args:
            translator: Backend-specific query translator implementation
        """
        self.translator = translator

    def translate(self, query: Query, entity_type: str) -> Dict[str, Any]:
        """
        Translate a query for one entity type.

        Args:
            query: The caller's query
            entity_type: Result key of the entity type, e.g. ``"dataset"``

        Returns:
            Backend query document

        Raises:
            UnknownEntityTypeError: If the entity type is not configured
        """
        profile = get_profile(entity_type)
        elastic_query = self.translator.translate(query, profile)
        logger.debug("Translated %s query: %s", entity_type, elastic_query)
        return elastic_query
