"""
Service configuration.

Settings are read once from the environment (and a ``.env`` file, if
present) and passed explicitly to every component.
"""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _float_env(name: str) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


class SearchSettings(BaseModel):
    """Configuration for the federated search service."""

    elastic_host: str = "http://localhost:9200"
    elastic_user: Optional[str] = None
    elastic_password: Optional[str] = None

    page_size: int = 100
    aggregation_size: int = 100
    similar_size: int = 3
    filter_bucket_size: int = 1000

    explanation_url: str = ""
    explanation_user: str = ""
    explanation_password: str = ""
    explanation_table: str = ""

    branch_timeout: Optional[float] = None

    log_level: str = "INFO"
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    @classmethod
    def from_env(cls) -> "SearchSettings":
        """
        Build settings from environment variables.

        Raises:
            ValueError: If a numeric setting is not a number
        """
        load_dotenv()

        return cls(
            elastic_host=os.getenv("ELASTIC_HOST", "http://localhost:9200"),
            elastic_user=os.getenv("ELASTIC_USER") or None,
            elastic_password=os.getenv("ELASTIC_PASSWORD") or None,
            page_size=_int_env("SEARCH_NO_RECORDS", 100),
            aggregation_size=_int_env("SEARCH_NO_RECORDS_AGGREGATION", 100),
            similar_size=_int_env("SEARCH_NO_RECORDS_SIMILAR_SEARCH", 3),
            filter_bucket_size=_int_env("SEARCH_NO_RECORDS_FILTERS", 1000),
            explanation_url=os.getenv("SEARCH_EXPLANATION_EXTRACTOR", "").strip(),
            explanation_user=os.getenv("SEARCH_EXPLANATION_USER", ""),
            explanation_password=os.getenv("SEARCH_EXPLANATION_PASSWORD", ""),
            explanation_table=os.getenv("SEARCH_EXPLANATION_TABLE", ""),
            branch_timeout=_float_env("SEARCH_BRANCH_TIMEOUT"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            api_host=os.getenv("API_HOST", "0.0.0.0"),
            api_port=_int_env("API_PORT", 8000),
        )
