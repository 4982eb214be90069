"""
Trigger Gate

Classifies each invocation as an on-demand pull or a push, and authorizes
pushes before any fetch, merge or RPC work starts.

    Pull  - read path request, no credential, served as plain text
    Push  - scheduler run (trusted), or request presenting a credential /
            hitting the push path (credential must match PUSH_TOKEN)

The gate fails closed: a request-triggered push is rejected when the
credential is missing, does not match, or no push token is configured.
"""

import hmac
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .exceptions import AuthenticationError

logger = logging.getLogger(__name__)


class TriggerKind(str, Enum):
    """Terminal classification of an invocation."""
    PULL = "pull"
    PUSH = "push"


@dataclass(frozen=True)
class Invocation:
    """One classified invocation of the pipeline."""

    kind: TriggerKind
    scheduled: bool = False
    credential: Optional[str] = None

    @property
    def trigger_name(self) -> str:
        if self.scheduled:
            return "scheduled"
        return self.kind.value

    def __repr__(self) -> str:
        credential = "present" if self.credential else "absent"
        return f"Invocation(kind={self.kind.value}, scheduled={self.scheduled}, credential={credential})"


class TriggerGate:
    """
    Decides per invocation between pull and push and verifies push credentials.

    Args:
        push_token: Shared secret required for request-triggered pushes.
                    Empty disables the request push path entirely.
    """

    def __init__(self, push_token: Optional[str] = None):
        self.push_token = push_token or ""

    def classify(
        self,
        scheduled: bool = False,
        wants_push: bool = False,
        credential: Optional[str] = None
    ) -> Invocation:
        """
        Classify an invocation.

        Args:
            scheduled: Invocation comes from the time-based scheduler
            wants_push: Request arrived on the push path
            credential: Shared-secret credential presented by the request

        Returns:
            Invocation with its terminal kind
        """
        if scheduled:
            return Invocation(kind=TriggerKind.PUSH, scheduled=True)

        if wants_push or credential:
            return Invocation(kind=TriggerKind.PUSH, credential=credential)

        return Invocation(kind=TriggerKind.PULL)

    def authorize(self, invocation: Invocation) -> None:
        """
        Verify that an invocation may proceed.

        Args:
            invocation: Classified invocation

        Raises:
            AuthenticationError: If a request-triggered push is not authorized
        """
        if invocation.kind == TriggerKind.PULL or invocation.scheduled:
            return

        if not invocation.credential:
            logger.warning("✗ Push rejected: no credential presented")
            raise AuthenticationError("Push credential required", status_code=401)

        if not self.push_token:
            logger.warning("✗ Push rejected: push path is disabled (PUSH_TOKEN not set)")
            raise AuthenticationError("Push path is not enabled", status_code=403)

        if not hmac.compare_digest(
            self.push_token.encode("utf-8"),
            invocation.credential.encode("utf-8")
        ):
            logger.warning("✗ Push rejected: credential mismatch")
            raise AuthenticationError("Invalid push credential", status_code=403)

        logger.debug("Push credential verified")

    def admit(
        self,
        scheduled: bool = False,
        wants_push: bool = False,
        credential: Optional[str] = None
    ) -> Invocation:
        """Classify and authorize in one step."""
        invocation = self.classify(scheduled=scheduled, wants_push=wants_push, credential=credential)
        self.authorize(invocation)
        return invocation
