import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import Settings, get_settings
from app.api import videos
from app.core.database import create_engine, init_models
from app.core.ids import IdentityAllocator
from app.core.storage import create_blob_store
from app.repositories.base import VideoCatalog
from app.repositories.memory import InMemoryCatalog
from app.repositories.sql import SqlCatalog
from app.services import MediaService, ReactionService, VideoService

logger = logging.getLogger(__name__)


async def create_catalog(settings: Settings) -> VideoCatalog:
    if settings.catalog_backend == "memory":
        return InMemoryCatalog()
    if settings.catalog_backend == "database":
        engine = create_engine(settings.database_url, echo=settings.debug)
        await init_models(engine)
        return SqlCatalog(engine)
    raise ValueError(f"Unknown catalog backend: {settings.catalog_backend}")


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=settings.log_level,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        catalog = await create_catalog(settings)
        # 저장소에 이미 있는 id는 다시 발급하지 않음
        allocator = IdentityAllocator(start=await catalog.max_id())
        app.state.catalog = catalog
        app.state.video_service = VideoService(catalog, allocator, api_prefix=settings.api_prefix)
        app.state.reaction_service = ReactionService(
            catalog, max_retries=settings.like_max_retries
        )
        app.state.media_service = MediaService(catalog, create_blob_store(settings))
        logger.info(
            f"{settings.app_name} started: catalog={settings.catalog_backend}, next id={allocator.last + 1}"
        )
        try:
            yield
        finally:
            await catalog.close()

    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        description="Video catalog with media upload and per-user likes",
        lifespan=lifespan,
    )
    app.state.settings = settings

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Catch all unhandled exceptions and log them."""
        logger.error(
            f"Unhandled error on {request.method} {request.url}: {type(exc).__name__}: {exc}",
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": f"{type(exc).__name__}: {str(exc)}"},
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(videos.router, prefix=f"{settings.api_prefix}/video", tags=["videos"])

    @app.get("/health")
    async def health_check():
        return {"status": "ok", "service": settings.app_name}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=8080)
