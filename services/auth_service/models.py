"""
Identity data models for the authentication service.
"""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class UserIdentity:
    """Signed-in user as reported by the identity provider"""
    uid: str
    is_anonymous: bool = True
    signed_in_at: datetime = field(default_factory=datetime.now)
