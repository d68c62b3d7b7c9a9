"""
Shared Password Gate

Both partners use one household password (APP_PASSWORD). There are no
user accounts; the password only keeps strangers out of the app.
"""

import hmac
from typing import Optional

from contigos.config import get_settings


def check_password(candidate: Optional[str], expected: Optional[str] = None) -> bool:
    """
    Compare a login attempt against the configured password.

    If no password is configured, every attempt is denied.
    """
    if expected is None:
        expected = get_settings().app.app_password
    if not expected or not candidate:
        return False
    return hmac.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))
