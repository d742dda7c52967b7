from datetime import datetime, timezone

from fastapi import APIRouter

router = APIRouter()

SERVICE_BANNER = {"message": "LinkedIn CTO Finder API", "status": "active"}


@router.get("/")
async def root() -> dict:
    return SERVICE_BANNER


@router.get("/api/")
async def api_root() -> dict:
    return SERVICE_BANNER


@router.get("/api/health")
async def health() -> dict:
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}
