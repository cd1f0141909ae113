import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import settings
from api.advisory import router as advisory_router
from api.lenders import router as lenders_router
from api.rehash import router as rehash_router
from services.lender_catalog import load_default_lenders
from utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.log_level, json_output=settings.log_json, service=settings.app_name)
    app.state.lenders = load_default_lenders()
    logger.info(
        "Lender catalog loaded",
        extra={"lenders": len(app.state.lenders), "advisory_enabled": settings.advisory_enabled},
    )
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        description="Auto deal rehash optimizer, bank compliance filter and deal advisory API",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(lenders_router)
    app.include_router(rehash_router)
    app.include_router(advisory_router)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
