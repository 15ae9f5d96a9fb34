"""
Federated Search - one query, every entity index.

Main entry point for creating search orchestrators.
"""

from federated_search.orchestrator import SearchOrchestrator

__all__ = ["SearchOrchestrator"]
