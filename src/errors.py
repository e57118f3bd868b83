"""
Exception types raised while synchronising the Key Vault firewall.
"""

from typing import Optional


class SyncError(Exception):
    """Base class for failures of a firewall sync run."""


class NotFoundError(SyncError):
    """
    Raised when the record store holds no IP entry for the sync.
    No firewall call must have been made before this exception.
    """


class AuthenticationError(SyncError):
    """
    Raised when the client-credentials token exchange fails.
    The underlying SDK exception is chained as __cause__.
    """
    def __init__(self, message: str = "Failed to acquire management API token", detail: Optional[str] = None):
        self.detail = detail
        full = message
        if detail:
            full = f"{full}: {detail}"
        super().__init__(full)


class RemoteAPIError(SyncError):
    """
    Raised when a management API call answers with a non-success status.
    Carries the remote reason phrase verbatim.
    """
    def __init__(self, action: str, status_code: int, reason: Optional[str] = None):
        self.action = action
        self.status_code = status_code
        self.reason = reason or ""
        super().__init__(f"Error {action}: {self.reason}")


__all__ = ["SyncError", "NotFoundError", "AuthenticationError", "RemoteAPIError"]
