"""Exceptions raised inside the federated search service."""


class FederatedSearchError(Exception):
    """Base class for service errors."""


class FilterShapeError(FederatedSearchError):
    """A filter value does not have the shape its key requires."""

    def __init__(self, key: str, value: object, expected: str):
        self.key = key
        self.value = value
        self.expected = expected
        super().__init__(f"Filter '{key}' expects {expected}, got {value!r}")


class UnknownEntityTypeError(FederatedSearchError):
    """The caller named an entity type that is not configured."""

    def __init__(self, entity_type: str):
        self.entity_type = entity_type
        super().__init__(f"Unknown entity type: {entity_type}")
