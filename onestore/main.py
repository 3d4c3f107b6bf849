# onestore/main.py
from contextlib import asynccontextmanager
import logging

from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI
from sqlalchemy.engine import Engine

from onestore.core.config import Settings, get_settings
from onestore.core.errors import register_exception_handlers
from onestore.core.payment_gateway import PaymentGateway
from onestore.database import build_engine, create_db_and_tables

# Import models so SQLModel metadata is populated before create_all()
from onestore.models import user as _user_models  # noqa: F401
from onestore.models import product as _product_models  # noqa: F401
from onestore.models import cart as _cart_models  # noqa: F401
from onestore.models import order as _order_models  # noqa: F401


# Routers
from onestore.routers.products import router as products_router
from onestore.routers.cart import router as cart_router
from onestore.routers.orders import router as orders_router
from onestore.routers.users import router as users_router
from onestore.routers.profile import router as profile_router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Verify DB connectivity and create tables.

    Shutdown:
      - Close the payment gateway HTTP client.
    """
    logger.info("Startup: connecting to database...")
    try:
        create_db_and_tables(app.state.engine)
        logger.info("Startup: DB connection OK, tables verified.")
    except Exception as e:
        logger.error("Startup: DB connection FAILED: %s", e)
        raise
    yield
    app.state.payment_gateway.close()


def create_app(
    settings: Settings | None = None,
    engine: Engine | None = None,
    payment_gateway: PaymentGateway | None = None,
) -> FastAPI:
    """
    Build the application.

    The engine and the payment gateway live on app.state; tests pass
    their own (in-memory SQLite, mocked HTTP transport).
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine or build_engine(
        settings.DATABASE_URL, ssl_require=settings.DATABASE_SSL_REQUIRE
    )
    app.state.payment_gateway = payment_gateway or PaymentGateway.from_settings(settings)

    # --- CORS configuration ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Versioned API prefix, e.g. /api
    app.include_router(products_router, prefix=settings.API_V1_STR)
    app.include_router(cart_router, prefix=settings.API_V1_STR)
    app.include_router(orders_router, prefix=settings.API_V1_STR)
    app.include_router(users_router, prefix=settings.API_V1_STR)
    app.include_router(profile_router, prefix=settings.API_V1_STR)

    @app.get("/")
    def root():
        """Health check endpoint."""
        return {"status": "ok", "service": "onestore-backend"}

    return app


app = create_app()
