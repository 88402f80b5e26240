from sqlalchemy import Engine
from sqlmodel import SQLModel, create_engine

from data_explorer.core.config import settings

engine = create_engine(str(settings.SQLALCHEMY_DATABASE_URI), pool_pre_ping=True)


def init_db(db_engine: Engine) -> None:
    # Tables should be created with migrations in larger deployments; the
    # store is a single key-value table so create_all is enough here.
    from data_explorer import models  # noqa: F401

    SQLModel.metadata.create_all(db_engine)
