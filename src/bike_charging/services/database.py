"""
Database schema and engine bootstrap.

The service only uses SQLAlchemy Core: every store operation is a single
parameterised statement, so no ORM session or unit of work is needed.
"""

import logging

from sqlalchemy import (
    Boolean,
    Column,
    Float,
    Integer,
    MetaData,
    String,
    Table,
    create_engine,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .errors import StoreUnavailableError

logger = logging.getLogger(__name__)

metadata = MetaData()

batteries = Table(
    "batteries",
    metadata,
    Column("id", String(50), primary_key=True),
    Column("level", Float, nullable=False),
    Column("is_charging", Boolean, nullable=False, default=False),
    Column("charging_speed", Float, nullable=False),
)

stations = Table(
    "stations",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(100), nullable=False),
    Column("address", String(255), nullable=False),
    Column("latitude", Float, nullable=False),
    Column("longitude", Float, nullable=False),
    Column("battery_level", Integer, nullable=False),
)


def build_engine(database_url: str) -> Engine:
    """
    Create the shared engine (and its connection pool).

    SQLite connections are used from the request threadpool and from the
    charging threads, so the same-thread check is turned off.
    """
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": 30}
    return create_engine(database_url, connect_args=connect_args, pool_pre_ping=True)


def init_db(engine: Engine) -> None:
    """Create the tables if they don't exist yet."""
    try:
        metadata.create_all(engine)
    except SQLAlchemyError as e:
        raise StoreUnavailableError(f"Could not initialise database: {e}") from e
    logger.info(f"Database ready at {engine.url.render_as_string(hide_password=True)}")
