from fastapi import APIRouter

from vocab_trainer.core.config import get_settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    return {"status": "ok", "service": get_settings().app_name}
