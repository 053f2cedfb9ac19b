import logging
import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from src.api.error import ClientError, client_error_handler
from src.api.routes import ai, credits, media


def create_app(config) -> FastAPI:
    logging.basicConfig(
        level=getattr(logging, str(config.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if config.ENABLE_SENTRY and config.DSN_SENTRY:
        sentry_sdk.init(dsn=config.DSN_SENTRY, environment=config.SENTRY_ENVIRONMENT)

    app = FastAPI(
        title="SEO Media Renamer",
        description="AI-assisted media renaming with credit accounting",
        version="1.0.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=config.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ClientError, client_error_handler)

    app.include_router(media.router, prefix=config.API_PREFIX)
    app.include_router(credits.router, prefix=config.API_PREFIX)
    app.include_router(ai.router, prefix=config.API_PREFIX)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "service": "seo-media-renamer"}

    return app
