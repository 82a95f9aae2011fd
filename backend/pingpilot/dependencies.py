"""Shared engine instances and FastAPI dependencies."""
from typing import Optional

from fastapi import Header, HTTPException

from .config import settings
from .database import async_session
from .services.orchestrator import CheckOrchestrator
from .store import SqlTargetStore, TargetStore

_store: Optional[TargetStore] = None
_orchestrator: Optional[CheckOrchestrator] = None


def get_store() -> TargetStore:
    global _store
    if _store is None:
        _store = SqlTargetStore(async_session)
    return _store


def get_orchestrator() -> CheckOrchestrator:
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = CheckOrchestrator(get_store())
    return _orchestrator


async def verify_api_key(x_api_key: Optional[str] = Header(default=None)):
    """Require X-API-Key when MONITORING_API_KEY is configured."""
    if settings.monitoring_api_key and x_api_key != settings.monitoring_api_key:
        raise HTTPException(status_code=401, detail="Invalid or missing API key")
