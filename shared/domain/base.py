"""
Base Domain Classes

Building blocks shared by the booking and catalog domains:
- ValueObject: Immutable objects compared by value
- DomainEvent: Something that happened to an aggregate, published after commit
"""

from abc import ABC
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from uuid import UUID, uuid4


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for value objects

    Value objects are immutable and have no identity.
    Two value objects are equal if all their attributes are equal.
    """
    pass


def _jsonable(value):
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


@dataclass
class DomainEvent:
    """
    Base class for domain events

    Events are raised by the application layer while a transaction is open
    and handed to the message bus only once that transaction has committed.
    """
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=datetime.now)
    aggregate_id: int | None = None

    @property
    def event_type(self) -> str:
        return self.__class__.__name__

    def payload(self) -> dict:
        """Event-specific fields, JSON-safe"""
        data = asdict(self)
        for key in ('event_id', 'occurred_at', 'aggregate_id'):
            data.pop(key, None)
        return _jsonable(data)

    def to_dict(self) -> dict:
        """Convert event to dictionary for serialization"""
        return {
            'event_id': str(self.event_id),
            'event_type': self.event_type,
            'occurred_at': self.occurred_at.isoformat(),
            'aggregate_id': self.aggregate_id,
            'payload': self.payload(),
        }
