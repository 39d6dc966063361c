"""
Unit of Work Pattern

Wraps a database transaction and makes sure domain events raised inside it
are published only after the transaction commits.
"""

from typing import List
import logging

from django.db import transaction

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)


class DjangoUnitOfWork:
    """
    Django implementation of Unit of Work

    Usage:
        with DjangoUnitOfWork() as uow:
            booking = store.insert(booking)
            uow.record(BookingRequested(...))
        # BookingRequested is published once the transaction has committed

    If the block raises, the transaction rolls back and recorded events are
    discarded.
    """

    def __init__(self, using: str | None = None):
        self._events: List[DomainEvent] = []
        self._atomic = transaction.atomic(using=using)
        self._using = using

    def __enter__(self):
        self._atomic.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is None:
                self.commit()
            else:
                self.rollback()
        finally:
            self._atomic.__exit__(exc_type, exc_val, exc_tb)

    def record(self, event: DomainEvent):
        self._events.append(event)

    def commit(self):
        """Schedule event publishing for after the database commit"""
        events = self._events.copy()
        self._events.clear()
        logger.debug(f"Committing unit of work with {len(events)} events")
        if events:
            transaction.on_commit(lambda: self._publish_events(events), using=self._using)

    def rollback(self):
        if self._events:
            logger.warning(f"Rolling back unit of work, discarding {len(self._events)} events")
        self._events.clear()

    def _publish_events(self, events: List[DomainEvent]):
        from shared.application.message_bus import message_bus

        try:
            message_bus.publish_events(events)
        except Exception as e:
            logger.error(f"Error publishing events: {e}", exc_info=True)
