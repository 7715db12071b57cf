"""
Application state container.

Owns one instance of every store on a shared storage backend, wires the
notifier, the audit actor and the event bus between them, and hydrates
them in dependency order.
"""
from typing import Optional

import structlog

from .config import Settings, settings as default_settings
from .services.events import EventBus, UserProfileChanged
from .services.notifications import Notifier
from .storage.factory import get_state_storage
from .storage.provider import StateStorage
from .stores.audit import AuditLogStore
from .stores.inventory import InventoryStore
from .stores.jobs import JobStore
from .stores.notifications import NotificationStore
from .stores.reports import ReportStore
from .stores.users import UserStore


logger = structlog.get_logger(__name__)


class Hub:
    def __init__(
        self,
        storage: StateStorage,
        tz_name: str = "UTC",
        audit_secret: Optional[str] = None,
        default_password: str = "password123",
        seed_on_empty: bool = True,
    ):
        self.storage = storage
        self.events = EventBus()

        self.audit = AuditLogStore(storage, integrity_secret=audit_secret, seed_on_empty=seed_on_empty)
        self.notifications = NotificationStore(storage, tz_name=tz_name, seed_on_empty=seed_on_empty)
        self.notifier = Notifier(self.notifications)

        self.users = UserStore(
            storage,
            events=self.events,
            audit=self.audit,
            notifier=self.notifier,
            default_password=default_password,
            seed_on_empty=seed_on_empty,
        )
        self.jobs = JobStore(storage, self.users, audit=self.audit, notifier=self.notifier, seed_on_empty=seed_on_empty)
        self.inventory = InventoryStore(
            storage,
            jobs=self.jobs,
            users=self.users,
            audit=self.audit,
            notifier=self.notifier,
            seed_on_empty=seed_on_empty,
        )
        self.reports = ReportStore(
            storage,
            users=self.users,
            jobs=self.jobs,
            inventory=self.inventory,
            audit=self.audit,
            notifier=self.notifier,
            seed_on_empty=seed_on_empty,
        )

        self.audit.actor_provider = lambda: self.users.current_user
        self.events.subscribe(UserProfileChanged, self.jobs.refresh_user_snapshots)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "Hub":
        settings = settings or default_settings
        return cls(
            get_state_storage(settings),
            tz_name=settings.tz_default,
            audit_secret=settings.audit_secret,
            default_password=settings.default_password,
            seed_on_empty=settings.seed_on_empty,
        )

    @property
    def stores(self):
        # jobs resolve users on seed, so users hydrate first
        return (self.audit, self.notifications, self.users, self.jobs, self.inventory, self.reports)

    def hydrate(self) -> "Hub":
        for store in self.stores:
            store.hydrate()
        logger.info(
            "hub_hydrated",
            users=len(self.users.users),
            jobs=len(self.jobs.jobs),
            items=len(self.inventory.items),
            reports=len(self.reports.reports),
        )
        return self

    @property
    def is_hydrated(self) -> bool:
        return all(store.is_hydrated for store in self.stores)

    def reset(self) -> None:
        """Drop every persisted collection and reseed."""
        for store in self.stores:
            store.clear_persisted()
        self.hydrate()
        logger.info("hub_reset")
