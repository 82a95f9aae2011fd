"""Check trigger API endpoints."""
import logging

from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import get_orchestrator, verify_api_key
from ..schemas.check import CheckRunSummary, ManualCheckRequest, ManualCheckResponse
from ..services.orchestrator import CheckOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/check-servers",
    tags=["checks"],
    dependencies=[Depends(verify_api_key)],
)


@router.get("", response_model=CheckRunSummary)
async def run_check_pass(orchestrator: CheckOrchestrator = Depends(get_orchestrator)):
    """Run one full check pass over all targets."""
    try:
        return await orchestrator.run_pass()
    except Exception as e:
        logger.error(f"Error checking servers: {type(e).__name__}: {e}")
        raise HTTPException(
            status_code=500,
            detail={"error": "Failed to check servers", "details": str(e)},
        )


@router.post("", response_model=ManualCheckResponse)
async def run_manual_check(
    request: ManualCheckRequest,
    orchestrator: CheckOrchestrator = Depends(get_orchestrator),
):
    """Check a single target now, regardless of its schedule."""
    try:
        response = await orchestrator.run_manual_check(request.target_id)
    except Exception as e:
        logger.error(f"Error checking target {request.target_id}: {type(e).__name__}: {e}")
        raise HTTPException(
            status_code=500,
            detail={"error": "Failed to check server", "details": str(e)},
        )

    if response is None:
        raise HTTPException(status_code=404, detail="Target not found")
    return response
