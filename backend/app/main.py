import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.settings import settings, validate_settings
from app.routers.config import router as config_router
from app.routers.tooth_conditions import router as tooth_conditions_router

app = FastAPI(title="Dental Odontogram API", version="0.1.0")
logger = logging.getLogger("dental_odontogram.startup")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    request_id = request.headers.get("x-request-id")
    logger.exception("Unhandled server error", extra={"request_id": request_id})
    payload = {"detail": "Internal server error"}
    if request_id:
        payload["request_id"] = request_id
    return JSONResponse(status_code=500, content=payload)


@app.on_event("startup")
def startup():
    validate_settings(settings)
    logging.getLogger("dental_odontogram").setLevel(settings.log_level)
    logger.info(
        "Odontogram API started (env=%s, export=%s).",
        settings.app_env,
        "enabled" if settings.feature_tooth_conditions_export else "disabled",
    )


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(config_router)
app.include_router(tooth_conditions_router)
