"""Admin PIN gate for the management endpoints.

The site has one shared admin PIN (ADMIN_PIN). When it is unset, admin
endpoints stay open, which is how the site has always run locally.
"""
import hmac
from typing import Any, Optional

from dunesea.errors import AdminAuthError

ADMIN_PIN_HEADER = "X-Admin-PIN"


class AdminGate:
    """Checks the X-Admin-PIN header against the configured PIN."""

    def __init__(self, pin: Optional[str] = None):
        self.pin = pin or None

    @property
    def enabled(self) -> bool:
        return self.pin is not None

    def _matches(self, candidate: Any) -> bool:
        if candidate is None:
            return False
        return hmac.compare_digest(str(candidate).encode("utf-8"), self.pin.encode("utf-8"))

    def check(self, header_pin: Any) -> None:
        """
        Guard an admin action.

        Raises:
            AdminAuthError: PIN configured and the header is missing or wrong
        """
        if not self.enabled:
            return
        if not self._matches(header_pin):
            raise AdminAuthError("Admin PIN required")

    def verify(self, pin: Any) -> None:
        """Validate a PIN typed into the management login."""
        if not self.enabled:
            return
        if not self._matches(pin):
            raise AdminAuthError("Wrong PIN.")
