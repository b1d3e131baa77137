# catering/data/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from catering.utils.settings import DATABASE_URL, DB_TIMEOUT_SECONDS


def _connect_args(url: str) -> dict:
    #timeout na polaczenie i na pojedyncze zapytanie (sekundy, nie bez konca)
    if url.startswith("postgresql"):
        return {
            "connect_timeout": DB_TIMEOUT_SECONDS,
            "options": f"-c statement_timeout={DB_TIMEOUT_SECONDS * 1000}",
        }
    if url.startswith("sqlite"):
        return {"timeout": DB_TIMEOUT_SECONDS, "check_same_thread": False}
    return {}


engine = create_engine(
    DATABASE_URL,
    pool_pre_ping=True,
    connect_args=_connect_args(DATABASE_URL),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """
    Dependency function that provides a database session.

    Yields:
        Session: SQLAlchemy database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
