import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, get_settings
from .routes import matching_router
from .services.llm_service import LLMService
from .services.matching_service import MatchingService
from .services.mongo_service import MongoService

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the FastAPI application; services are created in the lifespan"""
    settings = settings or get_settings()

    # Configure logging
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        mongo_service = MongoService(settings)
        await mongo_service.connect()
        llm_service = LLMService(settings)
        if not llm_service.is_configured:
            logger.warning("AI API key not configured, matches will use deterministic scores only")

        app.state.mongo_service = mongo_service
        app.state.llm_service = llm_service
        app.state.matching_service = MatchingService(settings, mongo_service, llm_service)
        yield
        # Shutdown
        await llm_service.close()
        await mongo_service.close()
        logger.info("Services stopped")

    app = FastAPI(
        title=settings.app_name,
        description="Subsidy discovery: profile analysis, relevance scoring and AI re-ranking",
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan
    )
    app.state.settings = settings

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins_list(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root():
        return {"message": f"{settings.app_name} is running", "version": settings.app_version}

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        mongo_service = getattr(app.state, "mongo_service", None)
        llm_service = getattr(app.state, "llm_service", None)
        storage_ok = await mongo_service.health_check() if mongo_service else False
        return {
            "status": "healthy" if storage_ok else "degraded",
            "service": "subsidy-matcher",
            "storage": storage_ok,
            "ai_configured": bool(llm_service and llm_service.is_configured),
        }

    app.include_router(matching_router, prefix=settings.api_prefix)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("subsidy_matcher.main:app", host="0.0.0.0", port=8000, reload=True)
