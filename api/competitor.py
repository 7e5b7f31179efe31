"""
API Endpoints for Competitor Analysis

Handles:
1. Start a 1-vs-3 competitor analysis for a stored report
2. Poll a comparison by id
3. Latest comparison for a report
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import BaseModel, Field

from src.errors import NotFoundError
from src.services.container import ServiceContainer

from .dependencies import get_container

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/competitor", tags=["Competitor Analysis"])


# =============================================================================
# REQUEST/RESPONSE MODELS
# =============================================================================

class CompetitorAnalysisRequest(BaseModel):
    """Request to compare a stored report against its competitors."""
    user_report_id: Optional[str] = Field(
        default=None,
        alias="userReportId",
        description="Id of the stored user audit report",
    )

    class Config:
        populate_by_name = True


class CompetitorAnalysisResponse(BaseModel):
    """Accepted competitor analysis."""
    success: bool
    comparisonId: str
    status: str
    message: str


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post("/analyze-3-1", response_model=CompetitorAnalysisResponse)
async def analyze_competitors(
    request: CompetitorAnalysisRequest,
    background_tasks: BackgroundTasks,
    container: ServiceContainer = Depends(get_container),
):
    """
    Start competitor analysis.

    Returns immediately with status "analyzing"; discovery, batch audits
    and the comparison run in the background. Poll
    /api/competitor/comparison/{comparisonId} for the result.
    """
    pipeline = container.competitor_pipeline
    comparison = pipeline.start(request.user_report_id)

    background_tasks.add_task(pipeline.dispatch, comparison["id"])
    logger.info(f"Queued competitor analysis {comparison['id']} for report {request.user_report_id}")

    return CompetitorAnalysisResponse(
        success=True,
        comparisonId=comparison["id"],
        status=comparison["status"],
        message="Competitor analysis started. Poll the comparison endpoint for results.",
    )


@router.get("/comparison/{comparison_id}")
async def get_comparison(
    comparison_id: str,
    container: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    """Get a comparison by id."""
    comparison = container.comparisons.get(comparison_id)
    if comparison is None:
        raise NotFoundError("Comparison not found")
    return {"comparison": comparison}


@router.get("/by-report/{report_id}")
async def get_comparison_by_report(
    report_id: str,
    container: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    """Get the most recent comparison started for a report."""
    comparison = container.comparisons.latest_for_report(report_id)
    if comparison is None:
        raise NotFoundError("No comparison found for this report")
    return {"comparison": comparison}
