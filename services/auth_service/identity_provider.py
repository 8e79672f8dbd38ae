"""
Identity provider - anonymous and custom-token sign-in with auth state listeners.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional
import itertools
import threading
import uuid

from jose import JWTError, jwt

from services.auth_service.models import UserIdentity
from utils.logging_config import get_logger


AuthStateCallback = Callable[[Optional[UserIdentity]], None]

TOKEN_ALGORITHM = "HS256"


class AuthFailure(Exception):
    """Sign-in was rejected or the provider could not be reached"""
    pass


def mint_custom_token(uid: str, secret: str, expires_in: Optional[timedelta] = timedelta(hours=1)) -> str:
    """
    Create a custom sign-in token (HS256 JWT) for a user

    The user id travels in the "uid" claim. Pass expires_in=None for a
    token without an "exp" claim.
    """
    claims = {"uid": uid}
    if expires_in is not None:
        claims["exp"] = datetime.now(timezone.utc) + expires_in
    return jwt.encode(claims, secret, algorithm=TOKEN_ALGORITHM)

class IdentityProvider:
    """
    Local identity provider.

    Listeners registered with on_auth_state_changed() are called immediately
    with the current user and again after every sign-in or sign-out.
    """

    def __init__(self, token_secret: str = ""):
        self.logger = get_logger(__name__)
        self.token_secret = token_secret
        self._lock = threading.RLock()
        self._current_user: Optional[UserIdentity] = None
        self._listeners: Dict[int, AuthStateCallback] = {}
        self._listener_ids = itertools.count(1)

    @property
    def current_user(self) -> Optional[UserIdentity]:
        return self._current_user

    def on_auth_state_changed(self, callback: AuthStateCallback) -> Callable[[], None]:
        """
        Register an auth state listener

        Returns:
            Function that removes the listener
        """
        with self._lock:
            listener_id = next(self._listener_ids)
            self._listeners[listener_id] = callback
            user = self._current_user

        callback(user)

        def unsubscribe():
            with self._lock:
                self._listeners.pop(listener_id, None)

        return unsubscribe

    def _set_user(self, user: Optional[UserIdentity]):
        with self._lock:
            self._current_user = user
            listeners = list(self._listeners.values())

        for listener in listeners:
            try:
                listener(user)
            except Exception as e:
                self.logger.error(f"Auth state listener failed: {e}", exc_info=True)

    def sign_in_anonymously(self) -> UserIdentity:
        user = UserIdentity(uid=uuid.uuid4().hex, is_anonymous=True)
        self.logger.info(f"Signed in anonymously: {user.uid}")
        self._set_user(user)
        return user

    def sign_in_with_custom_token(self, token: str) -> UserIdentity:
        """
        Sign in with an HS256 JWT signed with the configured secret

        The user id is read from the "uid" claim, falling back to "sub".

        Raises:
            AuthFailure: token malformed, expired or signature invalid
        """
        if not self.token_secret:
            raise AuthFailure("Custom token sign-in is not configured")

        try:
            claims = jwt.decode(token, self.token_secret, algorithms=[TOKEN_ALGORITHM])
        except JWTError as e:
            raise AuthFailure(f"Custom token rejected: {e}") from e

        uid = claims.get("uid") or claims.get("sub")
        if not isinstance(uid, str) or not uid:
            raise AuthFailure("Custom token carries no user id")

        user = UserIdentity(uid=uid, is_anonymous=False)
        self.logger.info(f"Signed in with custom token: {uid}")
        self._set_user(user)
        return user

    def sign_out(self):
        self.logger.info("Signed out")
        self._set_user(None)
