from typing import Optional


class AuthenticationError(Exception):
    """Raised when a session token or GitHub PAT cannot be authenticated."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)
        self.message = message


class GitHubAPIError(Exception):
    """
    Raised when a call to the GitHub REST API fails.

    ``status_code`` is GitHub's response status, or None when no response was
    received at all (DNS, TLS, timeout).
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def http_status(self) -> int:
        # Client errors are passed through; anything else is a bad gateway.
        if self.status_code is not None and 400 <= self.status_code < 500:
            return self.status_code
        return 502


class SealError(Exception):
    """Base class for secret encryption failures."""


class InvalidKeyError(SealError):
    """The recipient public key is not valid base64 or not 32 bytes long."""


class RandomSourceFailure(SealError):
    """The system random source could not provide an ephemeral key."""


class EncryptionFailure(SealError):
    """The box primitive rejected its input."""
