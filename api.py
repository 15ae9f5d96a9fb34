"""
FastAPI REST API for Federated Search.

Runs one query against every entity index and lists filter values for the UI.
"""

from functools import lru_cache
from typing import Any, Dict

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from federated_search import SearchOrchestrator
from federated_search.config import SearchSettings
from federated_search.core.exceptions import UnknownEntityTypeError
from federated_search.core.models import FilterRequest, Query, SimilarSearch
from federated_search.log import configure_logging

load_dotenv()

app = FastAPI(
    title="Federated Search API",
    description="Search datasets, tools, collections and related entities in one request",
    version="1.0.0",
)


@lru_cache(maxsize=1)
def get_orchestrator() -> SearchOrchestrator:
    """Create or get cached orchestrator instance."""
    settings = SearchSettings.from_env()
    configure_logging(settings.log_level)
    return SearchOrchestrator.from_elasticsearch(settings)


@app.exception_handler(UnknownEntityTypeError)
async def unknown_entity_type_handler(request: Request, exc: UnknownEntityTypeError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.post("/search")
def search_all(
    query: Query, orchestrator: SearchOrchestrator = Depends(get_orchestrator)
) -> Dict[str, Any]:
    """
    Search every entity type.

    Returns one backend-shaped result per entity type; a type whose search
    failed is present with empty hits.
    """
    results = orchestrator.search_all(query)
    return {name: result.to_response() for name, result in results.items()}


@app.post("/search/similar/datasets")
def search_similar_datasets(
    request: SimilarSearch, orchestrator: SearchOrchestrator = Depends(get_orchestrator)
) -> Dict[str, Any]:
    """Datasets similar to the one with the given id."""
    return orchestrator.similar(request.id).to_response()


@app.post("/search/{entity}")
def search_entity(
    entity: str,
    query: Query,
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
) -> Dict[str, Any]:
    """Search a single entity type."""
    return orchestrator.search(entity, query).to_response()


@app.post("/filters")
def list_filters(
    request: FilterRequest, orchestrator: SearchOrchestrator = Depends(get_orchestrator)
) -> Dict[str, Any]:
    """List the available values of each requested filter."""
    return orchestrator.list_filters(request).model_dump()


@app.get("/health")
def health(orchestrator: SearchOrchestrator = Depends(get_orchestrator)) -> Dict[str, Any]:
    """Backend status and service status."""
    return orchestrator.health()


if __name__ == "__main__":
    import uvicorn

    settings = SearchSettings.from_env()
    configure_logging(settings.log_level)
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
