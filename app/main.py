import logging
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.errors import register_exception_handlers
from app.core.logging_config import setup_logging, request_id_var
from app.api.v1.api import api_router
from app.services.audit_service import log_audit
from app.services.consent_service import ConsentManager

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME)

# CORS: use CORS_ORIGINS from env in production; default to localhost for dev
_default_origins = [
    "http://127.0.0.1:3000", "http://localhost:3000",
]
_origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()] if settings.CORS_ORIGINS else _default_origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    token = request_id_var.set(request_id)
    try:
        response = await call_next(request)
    finally:
        request_id_var.reset(token)
    response.headers["X-Request-ID"] = request_id
    return response


register_exception_handlers(app)


def _audit_consent(db, user_id: str, consent: dict) -> None:
    log_audit(db, user_id, "consent.updated", "consent", user_id, consent)


# one per process; routes receive it through Depends(get_consent_manager)
app.state.consent_manager = ConsentManager(settings.CONSENT_VERSION, settings.CONSENT_MAX_AGE_DAYS)
app.state.consent_manager.add_listener(_audit_consent)

app.include_router(api_router)


@app.get("/health")
def health():
    return {"status": "ok"}
