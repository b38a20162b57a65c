from __future__ import annotations

from fastapi import APIRouter

from app.core.settings import settings

router = APIRouter(tags=["config"])


@router.get("/config")
def get_config() -> dict[str, dict[str, object]]:
    return {
        "feature_flags": {
            "tooth_conditions_export": settings.feature_tooth_conditions_export,
        },
        "export": {
            "max_patients": settings.export_max_patients,
        },
    }
