"""
Error types shared by the LinguaKu client components
"""
from typing import Optional


class LinguaKuError(Exception):
    """Base class for all client errors"""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class PermissionDenied(LinguaKuError):
    """Microphone / speech recognition access was refused"""


class RecognitionFailed(LinguaKuError):
    """The speech recognizer failed to start or reported an error"""

    def __init__(self, message: str = "", code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class EmptyTranscript(LinguaKuError):
    """Analysis was requested with no recognized speech"""


class NotAuthenticated(LinguaKuError):
    """No auth token is stored, the user has to log in"""


class InvalidTransition(LinguaKuError):
    """A practice session operation was called in the wrong state"""


class ValidationError(LinguaKuError):
    """User input rejected before it was sent to the server"""

    def __init__(self, title: str, message: str):
        super().__init__(message)
        self.title = title


class NetworkError(LinguaKuError):
    """Request failed with a timeout or transport error after all retries"""

    TIMEOUT = "timeout"
    TRANSPORT = "transport"

    def __init__(self, reason: str, message: str = ""):
        super().__init__(message)
        self.reason = reason

    def __repr__(self) -> str:
        return f"NetworkError(reason={self.reason!r}, message={self.message!r})"


class AuthExpired(LinguaKuError):
    """Server answered 401 on an authenticated call"""


class ServerError(LinguaKuError):
    """Server answered 5xx or {success: false}"""

    def __init__(self, message: str = "", status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class CacheCorrupt(LinguaKuError):
    """A stored value could not be decoded"""


class LoginFailed(LinguaKuError):
    """Server rejected the credentials"""


class VerificationRequired(LoginFailed):
    """Account exists but its email address has not been verified yet"""

    def __init__(self, message: str = "", email: str = ""):
        super().__init__(message)
        self.email = email
