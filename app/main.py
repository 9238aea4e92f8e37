from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from app.core.config import Settings, get_settings
from app.core.errors import register_error_handlers
from app.core.lifespan import lifespan
from app.core.logging import configure_logging
from app.api.v1.routers.health import router as health_router
from app.api.v1.routers.stock import router as stock_router
from app.api.v1.routers.products import router as products_router
from app.api.v1.routers.recommendations import router as recommendations_router


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(level=logging.DEBUG if settings.DEBUG else logging.INFO)

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    # Connections are opened by the lifespan; settings are available right away
    app.state.settings = settings
    app.state.db = None
    app.state.redis = None

    # ------- CORS -------
    # ALLOWED_ORIGINS is a CSV, e.g. "https://shop.example.com,https://admin.example.com"
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins or ["*"],
        allow_credentials=False,                        # keep False so "*" stays legal
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        max_age=86400,
    )

    register_error_handlers(app)

    # ------- Routes -------
    app.include_router(health_router)
    # stock routes first: /products/update-stock must win over /products/{product_id}
    app.include_router(stock_router, prefix=settings.api_prefix)
    app.include_router(products_router, prefix=settings.api_prefix)
    app.include_router(recommendations_router, prefix=settings.api_prefix)
    return app


app = create_app()
