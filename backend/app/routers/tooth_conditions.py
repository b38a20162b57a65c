import logging
import time

from fastapi import APIRouter, HTTPException, Request, Response, status

from app.core.settings import settings
from app.schemas.tooth_conditions import (
    ExportRequest,
    OdontogramOut,
    ToothConditionOut,
    TreatmentListIn,
)
from app.services.odontogram import build_odontogram, condition_statistics
from app.services.tooth_conditions import derive_tooth_conditions
from app.services.tooth_conditions_csv import ExportOptions, ExportOptionsError, build_export

router = APIRouter(prefix="/tooth-conditions", tags=["tooth-conditions"])
logger = logging.getLogger("dental_odontogram.api")


def _log_access(request: Request, *, status_code: int, start: float, **fields) -> None:
    logger.info(
        "tooth_conditions_access",
        extra={
            "request_id": request.headers.get("x-request-id"),
            "path": request.url.path,
            "method": request.method,
            "status_code": status_code,
            "duration_ms": int((time.monotonic() - start) * 1000),
            **fields,
        },
    )


@router.post("", response_model=list[ToothConditionOut])
def derive_conditions(payload: TreatmentListIn, request: Request):
    start = time.monotonic()
    conditions = derive_tooth_conditions(payload.treatments)
    _log_access(
        request,
        status_code=200,
        start=start,
        treatment_count=len(payload.treatments),
        tooth_count=len(conditions),
    )
    return conditions


@router.post("/odontogram", response_model=OdontogramOut)
def get_odontogram(payload: TreatmentListIn, request: Request):
    start = time.monotonic()
    conditions = derive_tooth_conditions(payload.treatments)
    chart = build_odontogram(conditions)
    _log_access(request, status_code=200, start=start, tooth_count=len(conditions))
    return OdontogramOut(
        upper=chart["upper"],
        lower=chart["lower"],
        conditions=[item.model_dump() for item in conditions],
        statistics=condition_statistics(conditions),
    )


@router.post("/export")
def export_tooth_conditions(payload: ExportRequest, request: Request) -> Response:
    start = time.monotonic()
    if not settings.feature_tooth_conditions_export:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    if len(payload.patients) > settings.export_max_patients:
        _log_access(
            request,
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            start=start,
            patient_count=len(payload.patients),
        )
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Export is limited to {settings.export_max_patients} patients",
        )
    options = ExportOptions.model_validate(payload.model_dump(exclude={"patients"}))
    try:
        export = build_export(
            payload.patients, options, prefix=settings.export_filename_prefix
        )
    except ExportOptionsError as exc:
        _log_access(request, status_code=status.HTTP_400_BAD_REQUEST, start=start)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    _log_access(
        request,
        status_code=200,
        start=start,
        patient_count=len(payload.patients),
        row_counts=export.row_counts,
    )
    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )
