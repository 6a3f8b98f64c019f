from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import StaticPool


class ConfigBase(DeclarativeBase):
    """Base class for collections stored in the config document file."""

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.id}>"


class TracksBase(DeclarativeBase):
    """Base class for collections stored in the tracks document file."""

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.id}>"


def create_db_engine(database_url: str) -> Engine:
    """Create an engine for one of the embedded document files."""
    connect_args = {}
    kwargs = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        # In-memory databases only live as long as their single connection
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    return create_engine(database_url, connect_args=connect_args, **kwargs)


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False
    )
