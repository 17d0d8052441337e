"""
Connection authentication for padlink.

Sits between a transport handshake and the token store: pulls the token out
of whatever the client sent, decides whether the connection is accepted and
whether the host should offer pairing.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from .registry import fingerprint
from .token_store import TokenStore

logger = logging.getLogger("padlink.auth.service")


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a connection handshake."""

    authenticated: bool
    token: Optional[str] = None
    # True when no client has paired yet, so the host should show pairing
    pairing_required: bool = False


class ConnectionAuthenticator:
    """Authenticates recurring client connections by bearer token."""

    def __init__(self, token_store: TokenStore):
        """
        Initialize authenticator.

        Args:
            token_store: Opened token store
        """
        self.token_store = token_store

    @staticmethod
    def extract_token(raw: Any) -> Optional[str]:
        """
        Pull a bearer token out of a handshake value.

        Args:
            raw: Token as sent by the client (may include "Bearer " prefix)

        Returns:
            The bare token, or None if nothing usable was sent
        """
        if not isinstance(raw, str):
            return None

        token = raw.strip()
        if token[:7].lower() == "bearer ":
            token = token[7:].strip()

        return token or None

    def authenticate(self, raw: Any) -> AuthResult:
        """
        Authenticate a connection.

        A known token is refreshed and accepted. Anything else is rejected.
        """
        token = self.extract_token(raw)

        if token is not None and self.token_store.refresh_if_known(token):
            logger.info(f"Accepted connection with token {fingerprint(token)}")
            return AuthResult(authenticated=True, token=token)

        pairing_required = not self.token_store.has_any()
        logger.warning(
            f"Rejected connection (token={'missing' if token is None else fingerprint(token)}, "
            f"pairing_required={pairing_required})"
        )
        return AuthResult(authenticated=False, pairing_required=pairing_required)

    def pair(self) -> str:
        """Issue a fresh token to a newly paired client."""
        token = self.token_store.generate_token()
        self.token_store.issue(token)
        logger.info(f"Paired new client with token {fingerprint(token)}")
        return token

    def record_activity(self, token: str) -> None:
        """Note traffic on an authenticated connection."""
        self.token_store.touch(token)

    def pairing_required(self) -> bool:
        """Check whether no client has paired yet."""
        return not self.token_store.has_any()
