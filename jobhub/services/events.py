from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, DefaultDict, List, Type

import structlog

from ..schemas.users import User


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class UserProfileChanged:
    user: User


class EventBus:
    """Synchronous in-process publish/subscribe. Handlers run in subscription order."""

    def __init__(self):
        self._handlers: DefaultDict[Type, List[Callable]] = defaultdict(list)

    def subscribe(self, event_type: Type, handler: Callable) -> None:
        self._handlers[event_type].append(handler)

    def publish(self, event) -> None:
        handlers = self._handlers.get(type(event), [])
        logger.debug("event_published", event_type=type(event).__name__, handlers=len(handlers))
        for handler in handlers:
            handler(event)
