from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from .aggregators import HealthService
from .config import Settings, load_settings
from .errors import DataError, ErrorKind
from .logs import setup_logging
from .models import (
    BeneficiariosResponse,
    BreakdownResponse,
    ErrorResponse,
    HealthResponse,
    IndicadorResponse,
    SexoResponse,
    TipoResponse,
)
from .resolution import FileResolver

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.MISSING_INPUT: 404,
    ErrorKind.UNSUPPORTED_INDICATOR: 400,
    ErrorKind.NOT_FOUND: 500,
}

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}

salud = APIRouter(prefix="/api/salud", tags=["salud"], responses=ERROR_RESPONSES)


def get_service(request: Request) -> HealthService:
    return request.app.state.salud


@salud.get("/beneficiarios", response_model=BeneficiariosResponse, response_model_exclude_unset=True)
async def beneficiarios(service: HealthService = Depends(get_service)):
    return {"rows": await service.get_beneficiarios()}


@salud.get("/tipo", response_model=TipoResponse)
async def tipo(year: Optional[str] = None, service: HealthService = Depends(get_service)):
    return await service.get_tipo_beneficiario(year)


@salud.get("/sexo", response_model=SexoResponse)
async def sexo(year: Optional[str] = None, service: HealthService = Depends(get_service)):
    return await service.get_sexo(year)


@salud.get("/indicadores/{key}", response_model=IndicadorResponse)
async def indicador(key: str, service: HealthService = Depends(get_service)):
    return {"rows": await service.get_indicador(key)}


@salud.get("/edad", response_model=BreakdownResponse, response_model_exclude_unset=True)
async def edad(year: Optional[str] = None, service: HealthService = Depends(get_service)):
    return await service.get_edad(year)


@salud.get("/vigencia", response_model=BreakdownResponse, response_model_exclude_unset=True)
async def vigencia(year: Optional[str] = None, service: HealthService = Depends(get_service)):
    return await service.get_vigencia(year)


@salud.get("/region", response_model=BreakdownResponse, response_model_exclude_unset=True)
async def region(year: Optional[str] = None, service: HealthService = Depends(get_service)):
    return await service.get_region(year)


async def data_error_handler(request: Request, exc: DataError) -> JSONResponse:
    status = STATUS_BY_KIND[exc.kind]
    logger.error("%s %s failed (%s): %s", request.method, request.url.path, exc.kind.value, exc.message)
    body = ErrorResponse(error=exc.message, kind=exc.kind.value, detail=exc.detail)
    return JSONResponse(status_code=status, content=body.model_dump())


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()
    setup_logging(settings.log_level)

    app = FastAPI(
        title="dashboard-api",
        description="Health statistics CSVs normalized to JSON for the dashboard",
        version="0.1.0",
    )
    app.state.settings = settings
    app.state.salud = HealthService(FileResolver(settings))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_origin_regex=settings.allowed_origin_regex,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(DataError, data_error_handler)

    @app.get("/", response_class=PlainTextResponse)
    def root():
        return "Backend up"

    @app.get("/api/health", response_model=HealthResponse)
    def health():
        return {"status": "ok", "time": datetime.now(timezone.utc).isoformat()}

    app.include_router(salud)
    logger.info("serving CSVs from %s", settings.data_dir)
    return app


app = create_app()


def serve() -> None:
    """Run the app under uvicorn on the configured host and port."""
    settings = app.state.settings
    logger.info("listening on http://%s:%d", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
