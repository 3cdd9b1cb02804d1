# storefront/main.py
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from storefront.config import settings
from storefront.database import init_db
from storefront.errors import register_error_handlers
from storefront.routes.auth import router as auth_router
from storefront.routes.categories import router as categories_router
from storefront.routes.logs import router as logs_router
from storefront.routes.products import router as products_router
from storefront.routes.users import router as users_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Storefront API started, storage at %s", settings.STORAGE_DIR)
    yield


def create_app() -> FastAPI:
    app = FastAPI(title="Storefront Admin API", version="1.0.0", lifespan=lifespan)

    # Uploaded images are served straight from the storage directory
    Path(settings.STORAGE_DIR).mkdir(parents=True, exist_ok=True)
    app.mount(settings.STORAGE_URL_PREFIX, StaticFiles(directory=settings.STORAGE_DIR), name="storage")

    origins = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]
    if settings.FRONTEND_URL and settings.FRONTEND_URL not in origins:
        origins.append(settings.FRONTEND_URL)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(categories_router)
    app.include_router(products_router)
    app.include_router(logs_router)

    @app.get("/")
    def read_root():
        return {"success": True, "message": "Storefront API is running"}

    return app


app = create_app()
