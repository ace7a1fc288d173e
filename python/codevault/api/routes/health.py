"""Liveness probe."""

from fastapi import APIRouter

from codevault.responses import success_response

router = APIRouter()


@router.get("/health")
async def health_check() -> dict:
    """200 while the process is serving; touches neither the store nor auth."""
    return success_response({"status": "ok"})
