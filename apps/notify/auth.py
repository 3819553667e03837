"""Authentication context handling for outbound service calls.

Identities are passed explicitly to every unit of work instead of being read
from ambient (thread-local) request state. A unit of work is any callable
taking the identity to act as, or ``None`` to act anonymously:

    propagator = AuthenticationPropagator()
    propagator.propagate(lambda identity: client.fetch(app, identity=identity), user)
    propagator.allow_anonymous(lambda identity: client.publish(event, identity=identity))

HTTP clients turn the identity into request headers via ``identity_headers``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from django.conf import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_USER_HEADER = "X-SPINNAKER-USER"
DEFAULT_ACCOUNTS_HEADER = "X-SPINNAKER-ACCOUNTS"


@dataclass(frozen=True)
class Identity:
    """An end user an outbound call can be made on behalf of."""

    user: str
    allowed_accounts: tuple[str, ...] = ()

    @property
    def is_present(self) -> bool:
        """An identity without a user name counts as absent."""
        return bool(self.user and self.user.strip())

    def to_dict(self) -> dict[str, Any]:
        return {"user": self.user, "allowedAccounts": list(self.allowed_accounts)}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "Identity | None":
        if not data:
            return None
        accounts = data.get("allowedAccounts") or data.get("allowed_accounts") or ()
        if isinstance(accounts, str):
            accounts = [a.strip() for a in accounts.split(",") if a.strip()]
        return cls(user=data.get("user") or "", allowed_accounts=tuple(accounts))


def identity_headers(identity: Identity | None) -> dict[str, str]:
    """Request headers that carry ``identity``; empty when acting anonymously."""
    if identity is None or not identity.is_present:
        return {}

    user_header = getattr(settings, "NOTIFY_AUTH_USER_HEADER", DEFAULT_USER_HEADER)
    accounts_header = getattr(settings, "NOTIFY_AUTH_ACCOUNTS_HEADER", DEFAULT_ACCOUNTS_HEADER)

    headers = {user_header: identity.user}
    if identity.allowed_accounts:
        headers[accounts_header] = ",".join(identity.allowed_accounts)
    return headers


class AuthenticationPropagator:
    """Runs units of work either as a given identity or anonymously."""

    def propagate(self, work: Callable[[Identity | None], T], identity: Identity) -> T:
        """Run ``work`` impersonating ``identity``."""
        logger.debug("Running work as user=%s", identity.user)
        return work(identity)

    def allow_anonymous(self, work: Callable[[Identity | None], T]) -> T:
        """Run ``work`` without any user identity."""
        return work(None)
