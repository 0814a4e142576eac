from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database configuration from environment"""
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = "sqlite:///./pulse.db"


# Base class for models
Base = declarative_base()


def build_engine(database_url: str) -> Engine:
    """Create SQLAlchemy engine for the given URL"""
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})

    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_recycle=300
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to an engine"""
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@lru_cache(maxsize=1)
def get_session_factory() -> sessionmaker:
    """Default session factory for CLI and API entry points"""
    settings = DatabaseSettings()
    return build_session_factory(build_engine(settings.database_url))


def dialect_insert(session: Session, model):
    """INSERT construct supporting ON CONFLICT for the session's dialect"""
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)
    raise NotImplementedError(f"Conflict-ignore insert not supported for dialect '{dialect}'")
