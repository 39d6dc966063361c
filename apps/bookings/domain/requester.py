"""
Requester Identity

Who is asking. The admission service never looks at ambient request state;
controllers build one of these and pass it in.
"""

import hashlib
import hmac
import secrets
from dataclasses import dataclass

from django.core.exceptions import ValidationError
from django.core.validators import validate_email

from shared.domain.base import ValueObject

from .errors import ValidationFailed

GUEST_NAME_MAX_LENGTH = 100


@dataclass(frozen=True)
class GuestContact(ValueObject):
    """Contact details of an unauthenticated requester"""
    name: str
    email: str
    phone: str = ''

    def __post_init__(self):
        name = (self.name or '').strip()
        email = (self.email or '').strip()
        if not name:
            raise ValidationFailed('Guest name is required.')
        if len(name) > GUEST_NAME_MAX_LENGTH:
            raise ValidationFailed(f'Guest name must be at most {GUEST_NAME_MAX_LENGTH} characters.')
        if not email:
            raise ValidationFailed('Guest email is required.')
        try:
            validate_email(email)
        except ValidationError:
            raise ValidationFailed('Guest email is not a valid address.')
        object.__setattr__(self, 'name', name)
        object.__setattr__(self, 'email', email.lower())
        object.__setattr__(self, 'phone', (self.phone or '').strip())


@dataclass(frozen=True)
class RequesterIdentity(ValueObject):
    """
    Authenticated user, guest, or nobody

    ``guest`` carries contact details when a guest creates a booking;
    ``guest_token`` is the possession token a guest presents afterwards.
    """
    user_id: int | None = None
    guest: GuestContact | None = None
    guest_token: str | None = None
    is_staff: bool = False

    @classmethod
    def for_user(cls, user_id: int, is_staff: bool = False) -> 'RequesterIdentity':
        return cls(user_id=user_id, is_staff=is_staff)

    @classmethod
    def for_guest(cls, contact: GuestContact) -> 'RequesterIdentity':
        return cls(guest=contact)

    @classmethod
    def with_token(cls, token: str) -> 'RequesterIdentity':
        return cls(guest_token=token)

    @classmethod
    def anonymous(cls) -> 'RequesterIdentity':
        return cls()

    @property
    def is_user(self) -> bool:
        return self.user_id is not None

    @property
    def is_anonymous(self) -> bool:
        return self.user_id is None and self.guest is None and not self.guest_token


def issue_guest_token() -> str:
    return secrets.token_urlsafe(32)


def hash_guest_token(token: str) -> str:
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def guest_token_matches(token: str | None, stored_hash: str) -> bool:
    if not token or not stored_hash:
        return False
    return hmac.compare_digest(hash_guest_token(token), stored_hash)
