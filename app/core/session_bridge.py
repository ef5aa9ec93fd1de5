"""Hand-off from the SSO pipeline to the local session exchange endpoint."""
from __future__ import annotations
import logging
from typing import Optional
from urllib.parse import quote, urlencode

from app.core.errors import SessionIssuanceFailed
from app.core.stores import ExchangeTokenStore, LocalUser, StoreError

logger = logging.getLogger(__name__)

DEFAULT_EXCHANGE_PATH = "/sso/simple"


def post_login_destination(requested_path: Optional[str], exchange_path: str = DEFAULT_EXCHANGE_PATH) -> str:
    """Where to land after the exchange; never the exchange endpoint itself."""
    if not requested_path or requested_path == exchange_path:
        return "/"
    return requested_path


class SessionBridge:
    """Issues single-use exchange tokens and builds the redirect target."""

    def __init__(self, tokens: ExchangeTokenStore, exchange_path: str = DEFAULT_EXCHANGE_PATH):
        self.tokens = tokens
        self.exchange_path = exchange_path

    def issue(self, user: LocalUser, requested_path: Optional[str]) -> str:
        """Return the exchange redirect URL for a resolved user.

        Raises:
            SessionIssuanceFailed: The token store failed or returned nothing
        """
        try:
            token = self.tokens.issue(user.id)
        except StoreError as exc:
            logger.error("[SSO] Failed to issue temporary auth token for %s: %s", user.username, exc)
            raise SessionIssuanceFailed(str(exc), stage="session", username=user.username) from exc
        if not token:
            logger.error("[SSO] Token store returned an empty token for %s", user.username)
            raise SessionIssuanceFailed("empty token", stage="session", username=user.username)

        query = urlencode({
            "token": token,
            "redirectTo": post_login_destination(requested_path, self.exchange_path),
        }, quote_via=quote)
        return f"{self.exchange_path}?{query}"
