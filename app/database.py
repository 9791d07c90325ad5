import logging

from sqlalchemy_utils import database_exists, create_database
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from app.core.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def _engine_options(database_url: str) -> dict:
    if database_url.startswith("sqlite"):
        # Local runs and the test-suite share a single in-memory connection
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    return {"pool_pre_ping": True}


try:
    engine = create_engine(
        settings.DATABASE_URL,
        echo=False,  # Set to True for SQL debugging
        **_engine_options(settings.DATABASE_URL),
    )
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
except Exception as e:
    logger.error(f"[DB ERROR] Could not create engine or session: {e}")
    engine = None
    SessionLocal = None


def ensure_database_exists():
    """
    Checks if the database exists, and creates it if it does not.
    """
    if settings.DATABASE_URL.startswith("sqlite"):
        return
    try:
        if not database_exists(settings.DATABASE_URL):
            create_database(settings.DATABASE_URL)
            logger.info("Database created")
        else:
            logger.info("Database already exists")
    except Exception as e:
        logger.error(f"[DB ERROR] Could not check or create database: {e}")


def init_db():
    try:
        ensure_database_exists()
        # Register every model on the metadata before create_all
        import app.models  # noqa: F401
        if engine is not None:
            Base.metadata.create_all(bind=engine)
        else:
            logger.error("[DB ERROR] Engine is None, cannot create tables.")
    except Exception as e:
        logger.error(f"[DB ERROR] init_db failed: {e}")


# Dependency to get database session
def get_db():
    if SessionLocal is None:
        raise RuntimeError("[DB ERROR] SessionLocal is None, cannot get DB session.")
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
