"""
Field-override cache for aggregation fields.

Some index fields are analysed text and cannot be aggregated on directly;
the backend rejects such queries with a "Fielddata is disabled" or "Text
fields are not optimised" error naming the field. Once seen, the field is
remembered here as mapping to its ``.keyword`` sub-field, and every later
aggregation on it uses the override. Entries are never evicted.
"""

import re
import threading
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List

from federated_search.core.models import RootCause

KEYWORD_SUFFIX = ".keyword"

MAPPING_ERROR_MARKERS = (
    "Text fields are not optimised",
    "Fielddata is disabled",
)

_BRACKETED_FIELD = re.compile(r"\[(?P<field>[^\[\]]+)\]")


class _ReadWriteLock:
    """Many concurrent readers, one exclusive writer."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writing:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            while self._writing or self._readers:
                self._cond.wait()
            self._writing = True
        try:
            yield
        finally:
            with self._cond:
                self._writing = False
                self._cond.notify_all()


class FieldOverrideCache:
    """
    Process-wide mapping from logical field name to backend field name.

    One instance is shared by every in-flight translation and by error
    recovery. Reads take a shared lock, writes an exclusive one. Writes are
    idempotent upserts, so concurrent writers for the same key converge.
    """

    def __init__(self):
        self._overrides: Dict[str, str] = {}
        self._lock = _ReadWriteLock()

    def resolve(self, field: str) -> str:
        """Backend field name for ``field``: its override, or itself."""
        with self._lock.read():
            return self._overrides.get(field, field)

    def register(self, field: str, override: str) -> bool:
        """
        Record ``field -> override``.

        Returns:
            True if the cache changed, False if the mapping was already present
        """
        with self._lock.write():
            if self._overrides.get(field) == override:
                return False
            self._overrides[field] = override
            return True

    def register_keyword(self, field: str) -> bool:
        """Map ``field`` (with any ``.keyword`` suffix trimmed) to ``<field>.keyword``."""
        base = keyword_field_base(field)
        return self.register(base, keyword_override(base))

    def snapshot(self) -> Dict[str, str]:
        """A consistent copy of every override."""
        with self._lock.read():
            return dict(self._overrides)


def keyword_field_base(field: str) -> str:
    if field.endswith(KEYWORD_SUFFIX):
        return field[: -len(KEYWORD_SUFFIX)]
    return field


def keyword_override(field: str) -> str:
    """The ``.keyword`` sub-field of ``field``."""
    return f"{keyword_field_base(field)}{KEYWORD_SUFFIX}"


def fields_needing_keyword(root_causes: Iterable[RootCause]) -> List[str]:
    """
    Extract the field names named by recoverable mapping errors.

    Only reasons carrying one of the known markers are considered. Each
    bracketed token that looks like a field name (non-empty, no spaces) is
    returned with any ``.keyword`` suffix trimmed. The index the error came
    from is also bracketed in the reason (``... on [field] in [index]``);
    that token is not a field and is skipped.

    Args:
        root_causes: ``error.root_cause`` entries from a backend error body

    Returns:
        Field names in the order they were found, without duplicates
    """
    fields: List[str] = []
    for cause in root_causes:
        reason = cause.reason
        if not any(marker in reason for marker in MAPPING_ERROR_MARKERS):
            continue
        for match in _BRACKETED_FIELD.finditer(reason):
            field = match.group("field").strip()
            if not field or " " in field:
                continue
            if field == cause.index or reason[: match.start()].endswith(" in "):
                continue
            field = keyword_field_base(field)
            if field not in fields:
                fields.append(field)
    return fields
