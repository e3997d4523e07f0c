"""
LinkedIn Connector Service — application entry point.
"""

from __future__ import annotations

import logging
import sys
from typing import Dict

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.middleware import register_middleware
from config.settings import config
from connectors.encryption import is_encryption_enabled
from connectors.linkedin import LinkedInConnector
from connectors.nonce_store import purge_expired_nonces
from connectors.routes import router as linkedin_router
from database.session import close_db, init_db

logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
    stream=sys.stdout,
)
for _noisy in ("httpcore", "httpx", "asyncio", "sqlalchemy.engine"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(
        title="LinkedIn Connector Service",
        version="1.0.0",
        description="Connects local user accounts to LinkedIn via OAuth2.",
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_middleware(app)

    # Routes
    app.include_router(linkedin_router, prefix="/api/v1/connectors/linkedin")

    @app.get("/health")
    async def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.on_event("startup")
    async def on_startup():
        await init_db()

        purged = await purge_expired_nonces()
        if purged:
            logger.info("Purged %d expired OAuth state nonces", purged)

        if not LinkedInConnector().is_configured():
            logger.warning("LinkedIn connector not configured — set LINKEDIN_CLIENT_ID/LINKEDIN_CLIENT_SECRET")
        is_encryption_enabled()

        logger.info("Application ready to accept requests.")

    @app.on_event("shutdown")
    async def on_shutdown():
        await close_db()

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )
