from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response

from app.core.auth import get_current_principal
from app.core.config import get_settings
from app.grants.api import router as grants_router
from app.gyms.api import diets_router, exercises_router, products_router, trainings_router
from app.metrics import generate_metrics_payload, metrics_content_type
from app.platform.security.context import Principal

router = APIRouter()
router.include_router(diets_router)
router.include_router(trainings_router)
router.include_router(exercises_router)
router.include_router(products_router)
router.include_router(grants_router)


@router.get("/health", tags=["system"])
def health() -> dict[str, str]:
    settings = get_settings()
    return {
        "status": "ok",
        "service": settings.app_name,
        "environment": settings.app_env,
    }


@router.get("/me", tags=["auth"])
async def me(principal: Principal = Depends(get_current_principal)) -> dict[str, str | bool | None]:
    return {
        "id": str(principal.id),
        "role": principal.role.value,
        "gym_id": str(principal.tenant_id) if principal.tenant_id else None,
        "diet_id": str(principal.diet_id) if principal.diet_id else None,
        "approved": principal.approved,
    }


@router.get("/metrics", tags=["system"])
def metrics(principal: Principal = Depends(get_current_principal)) -> Response:
    settings = get_settings()
    if not settings.metrics_enabled:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not found")
    if not principal.is_super:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Metrics are restricted to super users")
    return Response(content=generate_metrics_payload(), media_type=metrics_content_type())
