"""Authentication and token storage for MobileCoder."""

import json
import logging
import os
from pathlib import Path
from typing import Callable, Optional

from .api import MobileCoderClient
from .exceptions import (
    MobileCoderAPIError,
    MobileCoderAuthenticationError,
    MobileCoderInvalidResponseError,
)
from .models import AuthUser

logger = logging.getLogger(__name__)

AuthStateListener = Callable[[bool], None]

DEFAULT_DEVICE_NAME = "pymobilecoder"
MIN_PASSWORD_LENGTH = 6


class AuthStateChannel:
    """Notifies subscribers when the user signs in or out.

    Owned by the AuthService; the sync engine and the file watcher subscribe
    to it when they are wired together.
    """

    def __init__(self) -> None:
        self._listeners: list[AuthStateListener] = []

    def subscribe(self, listener: AuthStateListener) -> Callable[[], None]:
        """Register a listener.

        Args:
            listener: Called with True on sign in and False on sign out

        Returns:
            Function that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, authenticated: bool) -> None:
        for listener in list(self._listeners):
            listener(authenticated)

    def __len__(self) -> int:
        return len(self._listeners)


class CredentialStore:
    """Persists the access token and user data in a private JSON file."""

    def __init__(self, path: Path):
        self.path = path

    def load(self) -> Optional[AuthUser]:
        """Load stored credentials.

        Returns:
            The stored user, or None if nothing usable is stored
        """
        if not self.path.exists():
            return None
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to read credentials: {e}")
            return None
        if not isinstance(data, dict) or not data.get("access_token"):
            return None
        return AuthUser.from_dict(data)

    def save(self, user: AuthUser) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Owner-only from creation
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(user.to_dict(), f, indent=2)
        # O_CREAT leaves the mode of an existing file alone
        os.chmod(self.path, 0o600)

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()


class AuthService:
    """Signs the user in and out and hands out the access token."""

    def __init__(self, client: MobileCoderClient, store: CredentialStore):
        """Initialize the auth service.

        Args:
            client: API client used for login, registration and verification
            store: Where the access token is kept between runs
        """
        self.client = client
        self.store = store
        self.state_changes = AuthStateChannel()

    def _store_session(self, data: dict, device_name: str) -> AuthUser:
        if not isinstance(data, dict) or not data.get("token"):
            raise MobileCoderInvalidResponseError("No token in login response")
        user_data = data.get("user") or {}
        user = AuthUser(
            id=str(user_data.get("id", "")),
            email=user_data.get("email", ""),
            device_name=device_name,
            access_token=data["token"],
        )
        self.store.save(user)
        self.state_changes.publish(True)
        return user

    def sign_in(
        self, email: str, password: str, device_name: str = DEFAULT_DEVICE_NAME
    ) -> AuthUser:
        """Sign in with email and password.

        Args:
            email: Account email
            password: Account password
            device_name: Name shown for this device in the account

        Returns:
            The signed in user

        Raises:
            MobileCoderAPIError: If the server rejects the credentials
        """
        data = self.client.login(email, password, device_name)
        user = self._store_session(data, device_name)
        logger.info(f"Signed in as {user.email}")
        return user

    def register(
        self, email: str, password: str, device_name: str = DEFAULT_DEVICE_NAME
    ) -> AuthUser:
        """Create an account and sign in with it.

        Raises:
            ValueError: If the email or password is obviously invalid
            MobileCoderAPIError: If registration fails
        """
        if not email or "@" not in email:
            raise ValueError("Please enter a valid email address")
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise ValueError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
            )
        data = self.client.register(email, password, device_name)
        user = self._store_session(data, device_name)
        logger.info(f"Registered {user.email}")
        return user

    def sign_out(self) -> None:
        """Forget the stored token and notify subscribers."""
        try:
            self.store.clear()
        except OSError as e:
            logger.error(f"Failed to remove stored credentials: {e}")
        self.state_changes.publish(False)

    def get_access_token(self) -> Optional[str]:
        """Return the stored access token without contacting the server."""
        user = self.store.load()
        return user.access_token if user else None

    def is_authenticated(self) -> bool:
        """Verify the stored token with the server.

        An invalid token is removed, which signs the user out.
        """
        token = self.get_access_token()
        if not token:
            return False
        try:
            self.client.get_me(access_token=token)
        except MobileCoderAuthenticationError:
            logger.info("Stored access token was rejected, signing out")
            self.sign_out()
            return False
        except MobileCoderAPIError as e:
            logger.warning(f"Could not verify access token: {e}")
            self.sign_out()
            return False
        return True

    def get_current_user(self) -> Optional[AuthUser]:
        if not self.is_authenticated():
            return None
        return self.store.load()

    def check_auth_state(self) -> bool:
        """Verify the token and publish the result to subscribers."""
        authenticated = self.is_authenticated()
        self.state_changes.publish(authenticated)
        return authenticated

    def on_auth_state_changed(
        self, listener: AuthStateListener
    ) -> Callable[[], None]:
        """Subscribe to sign in / sign out events."""
        return self.state_changes.subscribe(listener)
