from sqlalchemy.orm import declarative_base
from sqlalchemy import create_engine


def make_engine(database_url: str):
    kwargs = {"future": True, "pool_pre_ping": True}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        # Configure connection pool for server databases
        kwargs.update(pool_size=5, max_overflow=10, pool_recycle=3600)
    return create_engine(database_url, **kwargs)


Base = declarative_base()
