from typing import Optional

from ..config import Settings, settings as default_settings
from .provider import StateStorage, MemoryStateStorage


def get_state_storage(settings: Optional[Settings] = None) -> StateStorage:
    settings = settings or default_settings
    backend = (settings.state_backend or "local").lower()
    if backend == "memory":
        return MemoryStateStorage()
    if backend == "local":
        from .local_provider import LocalStateStorage
        return LocalStateStorage(settings.state_dir)
    if backend == "database":
        from .db_provider import DatabaseStateStorage
        return DatabaseStateStorage(settings.database_url)
    raise ValueError(f"Unknown STATE_BACKEND: {settings.state_backend}")
