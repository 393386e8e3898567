import logging
from contextlib import asynccontextmanager
from urllib.parse import urlparse

from fastapi import FastAPI
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from sales_api.api import product_routes
from sales_api.core.config import settings
from sales_api.core.errors import register_error_handlers
from sales_api.database import Base, engine
from sales_api.models import product  # noqa: F401  registers the products table

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
logger = logging.getLogger(__name__)


def mask_url_password(url: str) -> str:
    """Mask password in URL for logging."""
    parsed = urlparse(url)
    if parsed.password:
        return url.replace(f":{parsed.password}@", ":****@")
    return url


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info(f"Connected to database: {mask_url_password(settings.DATABASE_URL)}")
        Base.metadata.create_all(bind=engine)
    except OperationalError as e:
        logger.warning(f"Database connection failed: {e}")

    yield

    engine.dispose()


app = FastAPI(title="sales-api", lifespan=lifespan)

register_error_handlers(app)

app.include_router(product_routes.router)
