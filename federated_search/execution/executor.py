"""
Multi-entity search execution.

Runs one search per entity type concurrently and joins the results into a
single mapping keyed by entity type.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable, Dict, Optional, Sequence

from federated_search.core.entities import ENTITY_PROFILES, EntityProfile
from federated_search.core.models import BackendResult, Query

logger = logging.getLogger(__name__)

EntitySearch = Callable[[Query, EntityProfile], BackendResult]


class QueryExecutor:
    """
    Fans a query out to every entity type and joins the results.

    Each entity type runs on its own worker thread. Branches are isolated:
    an exception in one branch is logged and yields an empty result for that
    entity type only. By default the join waits for every branch; with
    ``branch_timeout`` set, branches that have not finished by then are
    abandoned and also yield empty results.
    """

    def __init__(
        self,
        search_entity: EntitySearch,
        profiles: Sequence[EntityProfile] = ENTITY_PROFILES,
        branch_timeout: Optional[float] = None,
    ):
        """
        Initialize query executor.

        Args:
            search_entity: Runs the single-entity search path for one profile
            profiles: Entity types to fan out to
            branch_timeout: Seconds to wait for the branches, or None to wait forever
        """
        self.search_entity = search_entity
        self.profiles = tuple(profiles)
        self.branch_timeout = branch_timeout

    def execute(self, query: Query) -> Dict[str, BackendResult]:
        """
        Search every entity type concurrently.

        Args:
            query: The caller's query, shared read-only by every branch

        Returns:
            Mapping of entity type name to its result, containing every
            configured entity type regardless of branch failures
        """
        if not self.profiles:
            return {}

        pool = ThreadPoolExecutor(
            max_workers=len(self.profiles), thread_name_prefix="entity-search"
        )
        try:
            futures: Dict[str, Future] = {
                profile.name: pool.submit(self._run_branch, query, profile)
                for profile in self.profiles
            }
            wait(futures.values(), timeout=self.branch_timeout)
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        results: Dict[str, BackendResult] = {}
        for name, future in futures.items():
            if future.done() and not future.cancelled():
                results[name] = future.result()
            else:
                logger.warning(
                    "Search of %s did not finish within %ss", name, self.branch_timeout
                )
                results[name] = BackendResult()
        return results

    def _run_branch(self, query: Query, profile: EntityProfile) -> BackendResult:
        try:
            return self.search_entity(query, profile)
        except Exception:
            logger.exception("Search of %s failed", profile.name)
            return BackendResult()
