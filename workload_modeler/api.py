"""
FastAPI API layer for the Workload Modeler.

Provides REST endpoints for:
- Behavior model and catalog storage
- Matching, merging and projection of behavior models
- Workload generation for one or several versions
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .catalog import Catalog
from .config import WorkloadModelerConfig
from .exceptions import ModelNotFoundError, WorkloadModelerError
from .matching import ValidityMatcher
from .merging import merge_models, normalize_weight
from .models import BehaviorModel, Variant, validate_variant
from .projection import project_variant
from .store import ModelStore, artifact_id
from .workload import WorkloadBuilder

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"


# Pydantic models for API
class MatchRequest(BaseModel):
    """Request to match a behavior model against valid state ids."""

    model: dict[str, Any]
    valid_ids: list[str]


class MergeRequest(BaseModel):
    """Request to merge two behavior models."""

    first: dict[str, Any]
    second: dict[str, Any]
    weight: Optional[float] = None


class ProjectRequest(BaseModel):
    """Request to project a variant onto a matrix."""

    variant: dict[str, Any]


class ValidateResponse(BaseModel):
    """Issues found per variant."""

    valid: bool
    issues: dict[str, list[str]]


class IntersectionRequest(BaseModel):
    """Request for a workload that is valid for several versions."""

    tag: str
    versions: list[str] = Field(..., min_length=1)


class StoredResponse(BaseModel):
    """Response after storing an artifact."""

    status: str
    id: str


# FastAPI app factory
def create_app(config: Optional[WorkloadModelerConfig] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Configuration for the workload modeler

    Returns:
        Configured FastAPI app
    """
    config = config or WorkloadModelerConfig()

    app = FastAPI(
        title="Workload Modeler API",
        description="Transforms behavior models into load test workloads",
        version=API_VERSION,
    )

    # Initialize components lazily
    _store: Optional[ModelStore] = None

    def get_store() -> ModelStore:
        nonlocal _store
        if _store is None:
            _store = ModelStore(config)
        return _store

    def get_builder() -> WorkloadBuilder:
        return WorkloadBuilder(config.initial_state, config.workload_initial_operation)

    @app.exception_handler(WorkloadModelerError)
    async def handle_modeler_error(request: Request, exc: WorkloadModelerError):
        status_code = 404 if isinstance(exc, ModelNotFoundError) else 400
        return JSONResponse(
            status_code=status_code,
            content={"detail": exc.message, "details": exc.details},
        )

    # Health check
    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "version": API_VERSION}

    # =========================================================================
    # Behavior Models
    # =========================================================================

    @app.put("/behavior/{tag}", response_model=StoredResponse)
    async def store_behavior(tag: str, body: dict[str, Any], version: str = Query(...)):
        """Store the behavior model of one version."""
        model = _parse(BehaviorModel, body)
        model_id = get_store().save_model(tag, version, model)
        return StoredResponse(status="stored", id=model_id)

    @app.get("/behavior")
    async def list_behaviors(tag: Optional[str] = None):
        """List the ids of stored behavior models."""
        return {"models": get_store().list_models(tag)}

    @app.get("/behavior/{tag}")
    async def get_behavior(tag: str, version: str = Query(...)):
        """Get the behavior model of one version."""
        return _require_model(tag, version).to_dict()

    @app.delete("/behavior/{tag}")
    async def delete_behavior(tag: str, version: str = Query(...)):
        """Delete the behavior model of one version."""
        if not get_store().delete_model(tag, version):
            raise ModelNotFoundError("behavior model", artifact_id(tag, version))
        return {"status": "deleted", "id": artifact_id(tag, version)}

    @app.post("/behavior/validate", response_model=ValidateResponse)
    async def validate_behavior(body: dict[str, Any]):
        """Report malformed variants of a behavior model without storing it."""
        model = _parse(BehaviorModel, body)
        issues = {}
        for variant in model.variants:
            found = validate_variant(variant, config.probability_tolerance)
            if found:
                issues[variant.name] = found
        return ValidateResponse(valid=not issues, issues=issues)

    # =========================================================================
    # Catalogs
    # =========================================================================

    @app.put("/catalogs/{tag}", response_model=StoredResponse)
    async def store_catalog(tag: str, body: dict[str, Any], version: str = Query(...)):
        """Store the catalog of one version."""
        catalog = _parse(Catalog, body)
        if catalog.version is None:
            catalog.version = version
        catalog_id = get_store().save_catalog(tag, version, catalog)
        return StoredResponse(status="stored", id=catalog_id)

    @app.get("/catalogs/{tag}")
    async def get_catalog(tag: str, version: str = Query(...)):
        """Get the catalog of one version."""
        return _require_catalog(tag, version).to_dict()

    # =========================================================================
    # Transformations
    # =========================================================================

    @app.post("/transform/match")
    async def match_behavior(request: MatchRequest):
        """Restrict a behavior model to the given valid state ids."""
        model = _parse(BehaviorModel, request.model)
        matcher = ValidityMatcher(request.valid_ids, config.initial_state)
        return matcher.match_model(model).to_dict()

    @app.post("/transform/merge")
    async def merge_behaviors(request: MergeRequest):
        """Merge two behavior models, ``second`` weighted by ``weight``."""
        first = _parse(BehaviorModel, request.first)
        second = _parse(BehaviorModel, request.second)
        weight = normalize_weight(request.weight, config.default_merge_weight)
        return merge_models(first, second, weight).to_dict()

    @app.post("/transform/project")
    async def project_behavior(request: ProjectRequest):
        """Project one variant onto its transition matrix."""
        variant = _parse(Variant, request.variant)
        return project_variant(variant).to_dict()

    # =========================================================================
    # Workloads
    # =========================================================================

    @app.post("/workloads/intersection")
    async def intersection_workload(request: IntersectionRequest):
        """
        Build one workload that is valid for every given version.

        Versions without a stored behavior model only contribute their catalog.
        """
        catalogs = [_require_catalog(request.tag, version) for version in request.versions]

        models = []
        for version in request.versions:
            model = get_store().get_model(request.tag, version)
            if model is None:
                logger.info(f"No behavior model for {artifact_id(request.tag, version)}; using its catalog only")
                continue
            models.append(model)

        if not models:
            raise HTTPException(status_code=404, detail="None of the versions has a behavior model")

        workload = get_builder().build_intersection_workload(models, catalogs)
        logger.info(f"Built intersection workload for {request.tag} over {len(request.versions)} versions")
        return workload.to_dict()

    @app.get("/workloads/{tag}")
    async def version_workload(tag: str, version: str = Query(...)):
        """Build the workload of one version from its stored model and catalog."""
        model = _require_model(tag, version)
        catalog = _require_catalog(tag, version)

        builder = get_builder()
        matched = ValidityMatcher(catalog.endpoint_ids(), config.initial_state).match_model(model)
        return builder.build_workload(matched, catalog, version=version).to_dict()

    # =========================================================================
    # Stats
    # =========================================================================

    @app.get("/stats")
    async def get_stats():
        """Get overall statistics about the stored artifacts."""
        return {"store": get_store().get_stats()}

    def _require_model(tag: str, version: str) -> BehaviorModel:
        model = get_store().get_model(tag, version)
        if model is None:
            raise ModelNotFoundError("behavior model", artifact_id(tag, version))
        return model

    def _require_catalog(tag: str, version: str) -> Catalog:
        catalog = get_store().get_catalog(tag, version)
        if catalog is None:
            raise ModelNotFoundError("catalog", artifact_id(tag, version))
        return catalog

    return app


def _parse(cls, body: dict[str, Any]):
    """Decode a request body, turning missing keys into a 400 response."""
    try:
        return cls.from_dict(body)
    except (KeyError, TypeError, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"Malformed {cls.__name__}: {e}") from e


# Create default app instance
app = create_app()
