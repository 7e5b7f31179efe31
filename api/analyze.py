"""
API Endpoints for Page Audits

FastAPI application that:
1. Runs full audits (performance, SEO, UX, content) and stores the report
2. Runs single-module audits
3. Serves stored reports, whole or per module
4. Mounts the competitor analysis endpoints

Run with:
    uvicorn api.analyze:app --reload
"""

import logging
import sys
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from src import __version__
from src.analyzer.engine import AuditOptions
from src.errors import AuditError, NotFoundError, ValidationError
from src.integrations.collector import CollectorError
from src.models import MODULE_NAMES
from src.services.container import ServiceContainer, build_container
from src.utils.config import get_settings

from .competitor import router as competitor_router
from .dependencies import get_container

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Audit"])


# ============================================================================
# REQUEST MODELS
# ============================================================================

class AnalyzeRequest(BaseModel):
    """Request to audit one page."""
    url: Optional[str] = Field(default=None, description="Page URL (https:// added when missing)")
    emulate_mobile: bool = Field(
        default=False,
        alias="emulateMobile",
        description="Score with mobile viewport rules",
    )

    class Config:
        populate_by_name = True


def _require_url(request: AnalyzeRequest) -> str:
    if not request.url or not request.url.strip():
        raise ValidationError("url is required")
    return request.url.strip()


# ============================================================================
# AUDIT ENDPOINTS
# ============================================================================

@router.get("/health")
async def health() -> Dict[str, Any]:
    """Liveness check."""
    settings = get_settings()
    return {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "service": settings.SERVICE_NAME,
        "version": __version__,
    }


@router.post("/analyze")
async def analyze(
    request: AnalyzeRequest,
    container: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    """Run a full audit and store the report."""
    url = _require_url(request)
    report = await container.engine.run(url, AuditOptions(emulate_mobile=request.emulate_mobile))

    data = report.to_dict()
    container.reports.save(data)
    return data


@router.post("/analyze/mobile")
async def analyze_mobile(
    request: AnalyzeRequest,
    container: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    """Full audit with mobile emulation forced on."""
    request.emulate_mobile = True
    return await analyze(request, container)


@router.post("/analyze/{module}")
async def analyze_module(
    module: str,
    request: AnalyzeRequest,
    container: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    """Run a single audit module. The result is returned, not stored."""
    if module not in MODULE_NAMES:
        raise ValidationError(f"Unknown module: {module}. Expected one of {', '.join(MODULE_NAMES)}")

    url = _require_url(request)
    options = AuditOptions(emulate_mobile=request.emulate_mobile)
    result = await container.engine.run_module(url, module, options)

    return {
        "url": url,
        "module": module,
        "scan_mode": options.scan_mode,
        "result": result.to_dict(),
    }


@router.get("/report/{report_id}")
async def get_report(
    report_id: str,
    container: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    """Get a stored report."""
    return container.reports.get_or_raise(report_id)


@router.get("/report/{report_id}/{module}")
async def get_report_module(
    report_id: str,
    module: str,
    container: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    """Get one module of a stored report."""
    if module not in MODULE_NAMES:
        raise ValidationError(f"Unknown module: {module}")

    report = container.reports.get_or_raise(report_id)
    result = (report.get("modules") or {}).get(module)
    if result is None:
        raise NotFoundError(f"Module {module} not found in report")

    return {"id": report_id, "url": report["url"], "module": module, "result": result}


# ============================================================================
# ERROR HANDLERS
# ============================================================================

async def audit_error_handler(request: Request, exc: AuditError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def collector_error_handler(request: Request, exc: CollectorError) -> JSONResponse:
    logger.warning(f"Page collection failed for {exc.url}: {exc}")
    return JSONResponse(status_code=502, content={"error": str(exc)})


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# ============================================================================
# APP FACTORY
# ============================================================================

def configure_logging(level: str = "INFO"):
    """Log to stdout (platforms treat stderr as errors)."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
        force=True,
    )
    # Quiet down chatty loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def create_app(container: Optional[ServiceContainer] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        container: Prebuilt services (built from settings on startup when omitted)

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="WebAudit AI",
        description="Page audits for performance, SEO, UX and content with AI insights",
        version=__version__,
    )
    app.state.container = container

    @app.on_event("startup")
    async def startup_event():
        if app.state.container is None:
            logger.info("Initializing services...")
            app.state.container = build_container()

    @app.on_event("shutdown")
    async def shutdown_event():
        if app.state.container is not None:
            await app.state.container.close()

    app.add_exception_handler(AuditError, audit_error_handler)
    app.add_exception_handler(CollectorError, collector_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(router)
    app.include_router(competitor_router)
    return app


configure_logging(get_settings().LOG_LEVEL)

app = create_app()
