"""
Message Bus

Routes domain events raised by the booking workflows to the handlers that
subscribed to them. Handlers run after the originating transaction commits.
"""

from typing import Callable, Dict, List, Type
import logging

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)


class MessageBus:
    """
    Message bus for domain events

    Multiple handlers per event type (1:N). A failing handler is logged and
    does not prevent the remaining handlers from running.
    """

    def __init__(self):
        self._event_handlers: Dict[Type[DomainEvent], List[Callable]] = {}

    def register_event_handler(
        self,
        event_type: Type[DomainEvent],
        handler: Callable[[DomainEvent], None]
    ):
        handlers = self._event_handlers.setdefault(event_type, [])
        if handler in handlers:
            return
        handlers.append(handler)
        logger.debug(f"Registered event handler for {event_type.__name__}")

    def handlers_for(self, event_type: Type[DomainEvent]) -> List[Callable]:
        return list(self._event_handlers.get(event_type, []))

    def publish_events(self, events: List[DomainEvent]):
        """Publish domain events to every registered handler"""
        for event in events:
            handlers = self.handlers_for(type(event))

            if not handlers:
                logger.debug(f"No handlers registered for event {event.event_type}")
                continue

            logger.info(f"Publishing event: {event.event_type} (ID: {event.event_id})")

            for handler in handlers:
                try:
                    handler(event)
                except Exception as e:
                    logger.error(
                        f"Error in event handler {handler.__name__} "
                        f"for event {event.event_type}: {e}",
                        exc_info=True
                    )


# Global message bus instance
message_bus = MessageBus()
