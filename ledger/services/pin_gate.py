"""Static PIN latch guarding the front end."""

import hmac
import logging

from ledger.models.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)


class PinGate:
    """
    Equality check against a fixed PIN.

    This is a UI latch, not a security boundary: there is no lockout, no
    hashing and no per-user state.
    """

    def __init__(self, pin: str):
        self._pin = pin
        self._unlocked = False

    @property
    def unlocked(self) -> bool:
        return self._unlocked

    def unlock(self, pin: str) -> bool:
        """Open the gate if ``pin`` matches. Returns whether it matched."""
        matched = hmac.compare_digest(str(pin).encode(), self._pin.encode())
        if matched:
            self._unlocked = True
        else:
            logger.warning("Rejected PIN attempt")
        return matched

    def lock(self) -> None:
        self._unlocked = False

    def require_unlocked(self) -> None:
        if not self._unlocked:
            raise UnauthorizedError("Ledger is locked, unlock it with the PIN first")
