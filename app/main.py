# -*- coding: utf-8 -*-
"""
main.py
=======

Zentrale Applikationssteuerung des PID-Meta-Resolvers (FastAPI).

Dieses Modul baut die Registry (Store, Provider-Service, Identifikations-
Engine) auf, lädt die vorregistrierten Provider aus der Konfiguration und
stellt die REST-Endpunkte bereit:

  • /v1/metaresolvers/identify   – Klassifikation einer Eingabe
  • /v1/metaresolvers/validate   – Gültigkeitsprüfung (optional typgebunden)
  • /v1/providers/...            – Provider lesen, anlegen, ändern, löschen
  • /v1/admin/providers/...      – Verwaltung inkl. Freigabestatus

Fachliche Fehler (`PidmrError`) und Validierungsfehler werden zentral in
`{"code": ..., "message": ...}`-Antworten übersetzt und protokolliert.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

from fastapi import APIRouter, FastAPI, Header, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.errors import NotFoundError, PidmrError
from app.modules.identification.engine import IdentificationEngine
from app.modules.registry.loader import load_providers_file
from app.modules.registry.models import (
    AdminProviderDto,
    IdentificationDto,
    InformativeResponse,
    ProviderDto,
    ProviderRequest,
    StatusUpdateRequest,
    UpdateProviderRequest,
    ValidityDto,
)
from app.modules.registry.provider_service import ProviderService
from app.modules.registry.store import ProviderStore
from app.utils.pagination import PageResource, build_page, check_page_args

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


# -------------------------------------------------------------------
# Globaler Exception Hook: sorgt für nachvollziehbare Fehlerausgabe
# -------------------------------------------------------------------
def handle_exception(exc_type, exc_value, exc_traceback):
    """Zentrale Fehlerbehandlung außerhalb des FastAPI-Kontextes."""
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_traceback)
        return
    logger.critical("❌ Unbehandelte Ausnahme", exc_info=(exc_type, exc_value, exc_traceback))


sys.excepthook = handle_exception


# -------------------------------------------------------------------
# Fehlerbehandlung (Exception → HTTP-Antwort)
# -------------------------------------------------------------------
def _error_response(code: int, message: str) -> JSONResponse:
    body = InformativeResponse(code=code, message=message)
    return JSONResponse(status_code=code, content=body.model_dump())


async def pidmr_error_handler(request: Request, exc: PidmrError):
    if exc.code >= 500:
        logger.error("❌ %s %s: %s", request.method, request.url.path, exc.message, exc_info=exc)
    else:
        logger.warning("⚠️ %s %s: %s", request.method, request.url.path, exc.message)
    return _error_response(exc.code, exc.message)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = "Validation Error"
    logger.warning("⚠️ Validation Error (%s %s): %s", request.method, request.url.path, message)
    return _error_response(400, message)


async def unexpected_error_handler(request: Request, exc: Exception):
    logger.error("❌ Unerwarteter Fehler bei %s %s", request.method, request.url.path, exc_info=exc)
    return _error_response(500, str(exc) or type(exc).__name__)


# -------------------------------------------------------------------
# ROUTES
# -------------------------------------------------------------------
router = APIRouter(prefix="/v1")


def _engine(request: Request) -> IdentificationEngine:
    return request.app.state.engine


def _service(request: Request) -> ProviderService:
    return request.app.state.provider_service


@router.get("/metaresolvers/identify", response_model=IdentificationDto)
def identify(request: Request, text: str = Query(...)):
    """Klassifiziert eine Eingabe als VALID, AMBIGUOUS oder INVALID."""
    result = _engine(request).identify(text)
    return IdentificationDto(**result.as_dict())


@router.get("/metaresolvers/validate", response_model=ValidityDto)
def validate(request: Request, pid: str = Query(...), type: Optional[str] = Query(None)):
    """
    Ohne `type`: gültig, wenn irgendein freigegebener Typ vollständig passt.
    Mit `type`: nur die Regeln dieses Typs; unbekannter Typ → 406.
    """
    engine = _engine(request)
    validity = engine.is_valid(pid) if type is None else engine.is_valid_for_type(pid, type)
    return ValidityDto(valid=validity.valid, type=validity.type)


def _provider_page(request: Request, page: int, size: int, approved_only: bool, dto) -> PageResource:
    check_page_args(page, size, settings.MAX_PAGE_SIZE)
    result = _service(request).page(page - 1, size, approved_only=approved_only)
    content = [dto.from_provider(p) for p in result.items]
    return build_page(content, result.total, page, size, request.url)


@router.get("/providers")
def list_providers(
    request: Request,
    page: int = Query(1),
    size: int = Query(settings.DEFAULT_PAGE_SIZE),
):
    return _provider_page(request, page, size, True, ProviderDto)


@router.get("/providers/resolution-modes")
def resolution_modes(request: Request):
    return sorted(_service(request).resolution_modes())


@router.get("/providers/by-pid", response_model=ProviderDto)
def provider_by_pid(request: Request, pid: str = Query(...)):
    return ProviderDto.from_provider(_engine(request).provider_for_pid(pid))


@router.get("/providers/{provider_id}", response_model=ProviderDto)
def get_provider(request: Request, provider_id: int):
    return ProviderDto.from_provider(_service(request).get(provider_id))


@router.post("/providers", response_model=ProviderDto, status_code=201)
def create_provider(
    request: Request,
    body: ProviderRequest,
    x_user_id: Optional[str] = Header(None),
):
    provider = _service(request).create(body, created_by=x_user_id)
    return ProviderDto.from_provider(provider)


@router.patch("/providers/{provider_id}", response_model=ProviderDto)
def update_provider(request: Request, provider_id: int, body: UpdateProviderRequest):
    return ProviderDto.from_provider(_service(request).update(provider_id, body))


@router.delete("/providers/{provider_id}", response_model=InformativeResponse)
def delete_provider(request: Request, provider_id: int):
    if not _service(request).delete(provider_id):
        raise NotFoundError(f"There is no Provider with the following id: {provider_id}")
    return InformativeResponse(code=200, message="Provider has been successfully deleted.")


@router.get("/admin/providers")
def admin_list_providers(
    request: Request,
    page: int = Query(1),
    size: int = Query(settings.DEFAULT_PAGE_SIZE),
):
    return _provider_page(request, page, size, False, AdminProviderDto)


@router.put("/admin/providers/{provider_id}/status", response_model=AdminProviderDto)
def update_provider_status(request: Request, provider_id: int, body: StatusUpdateRequest):
    provider = _service(request).update_status(provider_id, body.status)
    return AdminProviderDto.from_provider(provider)


# -------------------------------------------------------------------
# FastAPI-Anwendung initialisieren
# -------------------------------------------------------------------
def create_app(
    providers_file: Union[str, Path, None] = None,
    prefer_valid: Optional[bool] = None,
    store: Optional[ProviderStore] = None,
) -> FastAPI:
    """
    Baut die Anwendung. Ohne Argumente werden die Werte aus `settings`
    verwendet; ein übergebener Store wird unverändert übernommen
    (kein Laden der Provider-Datei).
    """
    if prefer_valid is None:
        prefer_valid = settings.IDENTIFY_PREFER_VALID

    application = FastAPI(title="PID Meta-Resolver")

    service = ProviderService(store or ProviderStore(), match_timeout=settings.MATCH_TIMEOUT)
    if store is None:
        path = providers_file or settings.PROVIDERS_FILE
        if path and Path(path).exists():
            load_providers_file(path, service)
        else:
            logger.warning("⚠️ Keine Provider-Datei gefunden (%s) – Registry startet leer.", path)

    application.state.provider_service = service
    application.state.engine = IdentificationEngine(service.store, prefer_valid=prefer_valid)

    application.add_exception_handler(PidmrError, pidmr_error_handler)
    application.add_exception_handler(RequestValidationError, validation_error_handler)
    application.add_exception_handler(Exception, unexpected_error_handler)
    application.include_router(router)

    logger.info("🚀 Meta-Resolver bereit (%d Provider)", len(service.store.list_providers()))
    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())
