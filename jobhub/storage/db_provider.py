"""
Database-backed state storage.
Each store key maps to a row in the persisted_state table.
"""
import os
from typing import List, Optional

from sqlalchemy.orm import sessionmaker

from ..db import Base, make_engine
from ..models.models import PersistedState
from .provider import StateStorage


class DatabaseStateStorage(StateStorage):
    def __init__(self, database_url: str, create_tables: bool = True):
        if database_url.startswith("sqlite:///./"):
            os.makedirs(os.path.dirname(database_url[len("sqlite:///"):]) or ".", exist_ok=True)
        self.engine = make_engine(database_url)
        self.Session = sessionmaker(bind=self.engine, autoflush=False, autocommit=False, future=True)
        if create_tables:
            Base.metadata.create_all(bind=self.engine, tables=[PersistedState.__table__])

    def get_item(self, key: str) -> Optional[str]:
        with self.Session() as db:
            row = db.get(PersistedState, key)
            return row.payload if row else None

    def set_item(self, key: str, value: str) -> None:
        with self.Session() as db:
            row = db.get(PersistedState, key)
            if row:
                row.payload = value
            else:
                db.add(PersistedState(name=key, payload=value))
            db.commit()

    def remove_item(self, key: str) -> None:
        with self.Session() as db:
            row = db.get(PersistedState, key)
            if row:
                db.delete(row)
                db.commit()

    def keys(self) -> List[str]:
        with self.Session() as db:
            return [name for (name,) in db.query(PersistedState.name).order_by(PersistedState.name).all()]
