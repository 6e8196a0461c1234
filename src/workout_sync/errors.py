"""
Typed errors surfaced by the synchronization engine.

No raw vendor exception crosses the engine boundary: every failure is one of
the classes below, carrying enough context to render an actionable message.
"""

from typing import Optional

from garminconnect import GarminConnectAuthenticationError

VENDOR_NAMES = {
    "garmin": "Garmin Connect",
    "intervals": "Intervals.icu",
}


class SyncError(Exception):
    """Base class for all engine errors."""

    error_code = "SYNC_ERROR"

    def __init__(self, vendor: str, message: str, hint: Optional[str] = None):
        super().__init__(message)
        self.vendor = vendor
        self.message = message
        self.hint = hint

    @property
    def vendor_name(self) -> str:
        return VENDOR_NAMES.get(self.vendor, self.vendor)

    def to_dict(self) -> dict:
        """Convert to the error payload returned by tools."""
        result = {
            "error": self.message,
            "error_code": self.error_code,
            "vendor": self.vendor,
        }
        if self.hint:
            result["hint"] = self.hint
        return result


class NotConnected(SyncError):
    """No session and no usable cached credentials."""

    error_code = "NOT_CONNECTED"

    def __init__(self, vendor: str):
        super().__init__(
            vendor,
            f"{VENDOR_NAMES.get(vendor, vendor)} is not connected.",
            hint=f"Connect {VENDOR_NAMES.get(vendor, vendor)} in settings.",
        )


class AuthExpired(SyncError):
    """The session died and the silent reconnect failed."""

    error_code = "SESSION_EXPIRED"

    def __init__(self, vendor: str):
        super().__init__(
            vendor,
            f"Your {VENDOR_NAMES.get(vendor, vendor)} session has expired.",
            hint=f"Reconnect {VENDOR_NAMES.get(vendor, vendor)} in settings.",
        )


class AuthInvalid(SyncError):
    """Explicit connect rejected by the vendor."""

    error_code = "INVALID_CREDENTIALS"

    def __init__(self, vendor: str, message: Optional[str] = None):
        super().__init__(
            vendor,
            message or f"{VENDOR_NAMES.get(vendor, vendor)} rejected the credentials.",
            hint="Double-check the credentials and try again.",
        )


class VendorUnavailable(SyncError):
    """HTTP/network failure that survived the single reconnect-retry."""

    error_code = "VENDOR_UNAVAILABLE"

    def __init__(self, vendor: str, action: str, detail: Optional[str] = None):
        message = f"{VENDOR_NAMES.get(vendor, vendor)} request failed while trying to {action}."
        if detail:
            message = f"{message} ({detail})"
        super().__init__(
            vendor,
            message,
            hint=f"Try reconnecting {VENDOR_NAMES.get(vendor, vendor)} in settings.",
        )
        self.action = action


class UnsupportedOperation(SyncError):
    """The vendor cannot represent the workout; ``fallback_description`` holds a text rendition."""

    error_code = "UNSUPPORTED_OPERATION"

    def __init__(self, vendor: str, message: str, fallback_description: Optional[str] = None):
        super().__init__(vendor, message)
        self.fallback_description = fallback_description

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.fallback_description:
            result["fallback_description"] = self.fallback_description
        return result


class NotFound(SyncError):
    """Reschedule/delete target absent from the vendor calendar."""

    error_code = "NOT_FOUND"


def http_status(error: Exception) -> Optional[int]:
    """Extract the HTTP status code from a vendor exception, if any."""
    # garth wraps the requests error in .error
    inner = getattr(error, "error", None)
    if isinstance(inner, Exception) and inner is not error:
        status = http_status(inner)
        if status is not None:
            return status
    response = getattr(error, "response", None)
    status = getattr(response, "status_code", None)
    if isinstance(status, int):
        return status
    return None


def is_auth_error(error: Exception) -> bool:
    """
    Check if a vendor error means the credentials/session were rejected.

    Args:
        error: The exception to check

    Returns:
        True for HTTP 401/403, garminconnect authentication errors, and
        "token ... invalid" style messages
    """
    if isinstance(error, GarminConnectAuthenticationError):
        return True
    if http_status(error) in (401, 403):
        return True
    error_msg = str(error).lower()
    return "unauthorized" in error_msg or "token" in error_msg and "invalid" in error_msg


def is_not_found_error(error: Exception) -> bool:
    return http_status(error) == 404
