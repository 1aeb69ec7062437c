from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool
import logging

from northstar.core.config import DATABASE_URL


db_logger = logging.getLogger("database")

Base = declarative_base()


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # Single shared connection so in-memory databases survive across sessions
        return {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }
    return {
        # Connection Pool Settings
        "poolclass": QueuePool,
        "pool_size": 15,
        "max_overflow": 25,
        "pool_timeout": 60,
        "pool_recycle": 3600,              # Recycle connections every hour
        "pool_pre_ping": True,             # Validate connections before use
        "connect_args": {
            "connect_timeout": 10,
            "application_name": "northstar",
        },
    }


engine = create_engine(DATABASE_URL, echo=False, future=True, **_engine_options(DATABASE_URL))

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False  # Keep objects accessible after commit
)


def get_db():
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
