"""PIN codes for BYOP (Bring Your Own PIN) sessions."""

from __future__ import annotations

import secrets
import string

from cobrowse_demo.errors import InvalidArgument

PIN_ALPHABET = string.ascii_uppercase + string.digits
DEFAULT_PIN_LENGTH = 8
MAX_PIN_LENGTH = 10  # SDK limit for custom PINs


def generate_pin_code(length: int = DEFAULT_PIN_LENGTH) -> str:
    """Return a random uppercase alphanumeric PIN of ``length`` characters."""
    if not 1 <= length <= MAX_PIN_LENGTH:
        raise InvalidArgument(
            f"PIN length must be between 1 and {MAX_PIN_LENGTH}",
            details={"length": length},
        )
    return "".join(secrets.choice(PIN_ALPHABET) for _ in range(length))


def normalize_pin_code(pin: str) -> str:
    """Strip and uppercase a PIN typed by an agent, rejecting what the SDK would."""
    value = (pin or "").strip().upper()
    if not value:
        raise InvalidArgument("PIN must not be empty")
    if len(value) > MAX_PIN_LENGTH:
        raise InvalidArgument(
            f"PIN must be at most {MAX_PIN_LENGTH} characters",
            details={"length": len(value)},
        )
    if any(ch not in PIN_ALPHABET for ch in value):
        raise InvalidArgument("PIN may only contain letters A-Z and digits 0-9")
    return value
