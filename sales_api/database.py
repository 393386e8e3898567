from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from sales_api.core.config import settings


def build_engine(url: str):
    """Create the engine, with pool settings for Postgres and thread sharing for SQLite."""
    if url.startswith("sqlite"):
        # Sessions are opened inside the threadpool, not the event loop thread
        return create_engine(url, connect_args={"check_same_thread": False})

    # pool_size: base connections always available
    # max_overflow: additional connections that can be created on demand
    return create_engine(
        url,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,  # Verify connections before using
        pool_recycle=3600,  # Recycle connections after 1 hour
        connect_args={
            "connect_timeout": 10,  # 10 second connection timeout
            "options": "-c statement_timeout=30000"  # 30 second statement timeout
        }
    )


engine = build_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()
