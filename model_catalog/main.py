"""Model catalog FastAPI application.

Responsibilities:
- CRUD over catalog models (`/models`)
- Purchasing a model (`POST /models/{id}/purchase`) and listing purchases

Repositories are built once per app and kept on `app.state`; handlers get
them through dependencies. Pass a database to `create_app` to skip the
startup connection (tests inject an in-memory one).

Run with:

    uvicorn model_catalog.main:app
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from pymongo.database import Database

from .config import (
    ALLOW_ORPHAN_PURCHASES,
    CORS_ORIGINS,
    HOST,
    LOG_LEVEL,
    MODELS_COLLECTION,
    PORT,
    PURCHASES_COLLECTION,
)
from .errors import NotFound
from .logging_config import setup_logging
from .models import ModelCreate, ModelUpdate, PurchaseRequest, PurchaseResponse
from .mongo import get_database
from .purchases import PurchaseService
from .repository import ModelRepository, PurchaseRecorder

logger = logging.getLogger(__name__)

router = APIRouter()


@contextmanager
def handle_errors(failure: str) -> Iterator[None]:
    """Map repository errors to HTTP responses.

    `NotFound` becomes a 404. Anything else, malformed ids included, is
    logged and becomes a 500 carrying the static `failure` message.
    """
    try:
        yield
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        logger.exception(failure)
        raise HTTPException(status_code=500, detail=failure) from e


def get_models(request: Request) -> ModelRepository:
    return request.app.state.models


def get_purchases(request: Request) -> PurchaseRecorder:
    return request.app.state.purchases


def get_purchase_service(request: Request) -> PurchaseService:
    return request.app.state.purchase_service


@router.get("/", response_class=PlainTextResponse)
def root() -> str:
    return "Server is running!"


@router.get("/hello", response_class=PlainTextResponse)
def hello() -> str:
    return "How are you!"


@router.get("/health")
def health() -> dict[str, str]:
    """Basic liveness endpoint."""
    return {"status": "ok"}


@router.get("/models")
def list_models(models: ModelRepository = Depends(get_models)) -> list[dict[str, Any]]:
    with handle_errors("Failed to fetch models"):
        return models.list_all()


@router.get("/models/{model_id}")
def get_model(model_id: str, models: ModelRepository = Depends(get_models)) -> dict[str, Any]:
    with handle_errors("Failed to fetch model"):
        return models.get(model_id)


@router.post("/models", status_code=201)
def create_model(body: ModelCreate, models: ModelRepository = Depends(get_models)) -> dict[str, Any]:
    with handle_errors("Failed to create model"):
        return models.create(body.fields())


@router.put("/models/{model_id}")
def update_model(
    model_id: str,
    body: ModelUpdate,
    models: ModelRepository = Depends(get_models),
) -> dict[str, Any]:
    with handle_errors("Failed to update model"):
        return models.update(model_id, body.fields())


@router.delete("/models/{model_id}")
def delete_model(model_id: str, models: ModelRepository = Depends(get_models)) -> dict[str, str]:
    with handle_errors("Failed to delete model"):
        models.delete(model_id)
    return {"message": "Model deleted successfully"}


@router.post("/models/{model_id}/purchase", response_model=PurchaseResponse)
def purchase_model(
    model_id: str,
    body: PurchaseRequest | None = None,
    service: PurchaseService = Depends(get_purchase_service),
):
    """Increment the model's `purchased` counter and log the purchase.

    The body is optional; without `buyerEmail` the guest address is stored.
    """
    buyer_email = body.buyerEmail if body else None
    with handle_errors("Error purchasing model"):
        updated = service.purchase(model_id, buyer_email)
    return PurchaseResponse(updatedModel=updated)


@router.get("/purchases")
def list_purchases(purchases: PurchaseRecorder = Depends(get_purchases)) -> list[dict[str, Any]]:
    with handle_errors("Failed to fetch purchases"):
        return purchases.list_all()


def attach_store(app: FastAPI, database: Database, allow_orphan_purchases: bool) -> None:
    """Build the repositories over `database` and hang them on `app.state`."""
    models = ModelRepository(database[MODELS_COLLECTION])
    purchases = PurchaseRecorder(database[PURCHASES_COLLECTION])
    app.state.models = models
    app.state.purchases = purchases
    app.state.purchase_service = PurchaseService(models, purchases, allow_orphans=allow_orphan_purchases)


def create_app(
    database: Database | None = None,
    allow_orphan_purchases: bool = ALLOW_ORPHAN_PURCHASES,
) -> FastAPI:
    """Create the FastAPI app.

    Without `database`, the Mongo connection is opened on startup.
    """
    setup_logging(LOG_LEVEL)

    app = FastAPI(title="Model Catalog API")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)

    if database is not None:
        attach_store(app, database, allow_orphan_purchases)

    @app.on_event("startup")
    def on_startup() -> None:
        if not hasattr(app.state, "models"):
            attach_store(app, get_database(), allow_orphan_purchases)

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve `app` with uvicorn on HOST:PORT."""
    logger.info("Server listening on port %s", PORT)
    uvicorn.run(app, host=HOST, port=PORT)
