"""
Discriminated result type decoded at the gateway boundary
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from errors import AuthExpired, ServerError

AUTH_EXPIRED = 'auth_expired'
SERVER_ERROR = 'server_error'
MALFORMED_RESPONSE = "Malformed response"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Ok:
    """Successful response, data is the body's `data` field"""
    data: Any = None
    message: str = ''
    payload: dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> Any:
        return self.data


@dataclass(frozen=True)
class Err:
    """HTTP error status or a {success: false} body"""
    code: str
    message: str = ''
    status: Optional[int] = None
    payload: dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self) -> Any:
        raise self.to_exception()

    def to_exception(self) -> Exception:
        if self.code == AUTH_EXPIRED:
            return AuthExpired(self.message or "Authentication expired. Please login again.")
        return ServerError(self.message or "Server error. Please try again later.", status=self.status)


ApiResult = Union[Ok, Err]


def decode_response(status: int, body: Any) -> ApiResult:
    """
    Turn an HTTP status and parsed JSON body into Ok or Err.

    Args:
        status: HTTP status code
        body: Parsed JSON body, or None if the body was empty / not JSON

    Returns:
        Ok for a 2xx response whose body does not say success=false, else Err
    """
    payload = body if isinstance(body, dict) else {}
    message = str(payload.get('message') or '')

    if status == 401:
        return Err(AUTH_EXPIRED, message, status, payload)
    if not 200 <= status < 300:
        return Err(SERVER_ERROR, message or f"Server error ({status})", status, payload)
    if payload.get('success') is False:
        return Err(SERVER_ERROR, message, status, payload)

    if isinstance(body, dict):
        return Ok(body.get('data'), message, payload)
    # Bare JSON list / scalar bodies carry the data directly
    return Ok(body, message, payload)


def map_ok(result: ApiResult, convert) -> ApiResult:
    """Apply convert to the data of an Ok, pass an Err through unchanged.

    Data that does not fit the model becomes Err(server_error) here so callers
    only ever see decoded results.
    """
    if not isinstance(result, Ok):
        return result
    try:
        data = convert(result.data)
    except (TypeError, ValueError, KeyError, AttributeError) as e:
        logger.error(f"Malformed response data: {e!r}")
        return Err(SERVER_ERROR, MALFORMED_RESPONSE, payload=result.payload)
    return Ok(data, result.message, result.payload)
