# barbershop/db.py

import logging

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

# register tables on SQLModel.metadata
from barbershop import models  # noqa: F401

logger = logging.getLogger(__name__)


def make_engine(database_url: str, **kwargs) -> Engine:
    connect_args = kwargs.pop("connect_args", {})
    if database_url.startswith("sqlite"):
        # required for SQLite + FastAPI
        connect_args.setdefault("check_same_thread", False)
    return create_engine(
        database_url,
        echo=False,  # set to True to see SQL
        connect_args=connect_args,
        **kwargs,
    )


def init_db(engine: Engine) -> None:
    SQLModel.metadata.create_all(engine)
    logger.info(f"Database tables ready on {engine.url.render_as_string(hide_password=True)}")
