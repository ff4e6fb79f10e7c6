"""
Saju Interpretation Engine: API Server
======================================

Read-only API exposing interpretation views to the presentation layer.

Endpoints:
- GET  /health                      -> Engine status
- POST /api/v1/analysis             -> View for a classification
- GET  /api/v1/principles/{name}    -> View for a general-principle document
- GET  /api/v1/metrics              -> Resolution counters

Usage:
    uvicorn interpretation.api.server:app --reload
"""
import logging
import os
from contextlib import asynccontextmanager
from typing import Dict, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from ..contracts.base import Classification, NotFound
from ..engine import EngineConfig, InterpretationEngine
from ..observability import setup_logging
from .mapper import map_not_found_to_dto, map_view_to_dto

logger = logging.getLogger(__name__)

# =============================================================================
# INFRASTRUCTURE SETUP
# =============================================================================

# Global Engine Instance
engine_instance: Optional[InterpretationEngine] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the knowledge base once; failure aborts startup."""
    global engine_instance

    setup_logging(
        os.environ.get("INTERPRETATION_LOG_LEVEL", "INFO"),
        os.environ.get("INTERPRETATION_LOG_FORMAT", "text")
    )
    config = EngineConfig.from_env()
    logger.info("Initializing interpretation engine from %s", config.knowledge.path)

    engine_instance = InterpretationEngine(config)
    logger.info("Engine initialized: %d patterns", len(engine_instance.knowledge_base.patterns))

    yield

    logger.info("Shutting down interpretation engine")
    engine_instance = None


app = FastAPI(
    title="Saju Interpretation Engine API",
    version="0.1.0",
    description="Interpretation views for computed saju classifications",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


class AnalysisRequest(BaseModel):
    """Classification produced upstream."""
    pattern: str = Field(..., min_length=1)
    factors: Dict[str, bool] = Field(default_factory=dict)


def _engine() -> InterpretationEngine:
    if not engine_instance:
        raise HTTPException(status_code=503, detail="Engine not initialized")
    return engine_instance


# =============================================================================
# ENDPOINTS
# =============================================================================

@app.get("/health")
async def health_check():
    """System status."""
    engine = _engine()
    return {"status": "online", "patterns": len(engine.knowledge_base.patterns)}


@app.post("/api/v1/analysis")
async def get_analysis(request: AnalysisRequest):
    """
    Resolve and render the interpretation for a classification.
    404 carries the NotFound reason ("unknown-pattern" or "no-match").
    """
    engine = _engine()
    result = engine.get_analysis_view(Classification.create(request.pattern, request.factors))
    if isinstance(result, NotFound):
        raise HTTPException(status_code=404, detail=map_not_found_to_dto(result))
    return map_view_to_dto(result)


@app.get("/api/v1/principles/{name}")
async def get_principle(name: str):
    """Render a general-principle document (e.g. 격국_원리_Why)."""
    engine = _engine()
    result = engine.get_principle_view(name)
    if isinstance(result, NotFound):
        raise HTTPException(status_code=404, detail=map_not_found_to_dto(result))
    return map_view_to_dto(result)


@app.get("/api/v1/metrics")
async def get_metrics():
    """Aggregated resolution counters."""
    engine = _engine()
    metrics = engine.observability.metrics
    return metrics.snapshot() if metrics else {}
