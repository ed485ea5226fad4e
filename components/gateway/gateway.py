"""
Remote gateway: every backend request goes through here
"""
import aiohttp
import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from errors import NetworkError
from .config import REQUEST
from .result import ApiResult, decode_response
from .retry import RetryPolicy, linear_backoff

logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = 'Request timeout. Please check your internet connection and try again.'


def is_network_error(error: BaseException) -> bool:
    return isinstance(error, NetworkError)


class RemoteGateway:
    """Async HTTP layer with a hard per-attempt timeout and retry with linear backoff.

    Only timeouts and transport errors are retried. Any HTTP response, even
    an error status or a {success: false} body, ends the retry loop and is
    decoded into Ok / Err for the caller.
    """

    def __init__(self, base_url: str, auth_store=None,
                 timeout: float = REQUEST.TIMEOUT_SECONDS,
                 retries: int = REQUEST.RETRIES,
                 backoff_step: float = REQUEST.BACKOFF_STEP_SECONDS,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        self.base_url = base_url.rstrip('/')
        self.auth_store = auth_store
        self.timeout = timeout
        self.retries = retries
        self.backoff_step = backoff_step
        self.sleep = sleep
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()

    def full_url(self, endpoint: str) -> str:
        if endpoint.startswith('http'):
            return endpoint
        return f"{self.base_url}{endpoint}"

    async def _send(self, method: str, url: str, **kwargs) -> tuple[int, Any]:
        """Perform one HTTP exchange, returning (status, parsed JSON body or None)"""
        session = await self._get_session()
        async with session.request(method, url, **kwargs) as response:
            if response.status == 204:
                return response.status, None
            try:
                body = await response.json(content_type=None)
            except ValueError:
                error_text = await response.text()
                logger.error(f"Non-JSON response {response.status} from {url}: {error_text[:200]}")
                body = None
            return response.status, body

    async def _attempt(self, method: str, url: str, timeout: float, **kwargs) -> tuple[int, Any]:
        try:
            return await asyncio.wait_for(self._send(method, url, **kwargs), timeout)
        except asyncio.TimeoutError as e:
            raise NetworkError(NetworkError.TIMEOUT, TIMEOUT_MESSAGE) from e
        except aiohttp.ClientError as e:
            raise NetworkError(NetworkError.TRANSPORT, str(e) or e.__class__.__name__) from e

    async def request(self, method: str, endpoint: str, *, json: Any = None,
                      params: Optional[dict] = None, auth: bool = False,
                      timeout: Optional[float] = None,
                      retries: Optional[int] = None) -> ApiResult:
        """
        Send a request and decode the response.

        Args:
            method: HTTP method
            endpoint: Path relative to the base URL (or an absolute URL)
            json: JSON body
            params: Query parameters
            auth: Attach the stored bearer token
            timeout: Per-attempt timeout in seconds
            retries: Extra attempts after a timeout / transport failure

        Returns:
            Ok or Err

        Raises:
            NotAuthenticated: auth=True and no token is stored
            NetworkError: every attempt timed out or failed in transport
        """
        headers = {'Content-Type': 'application/json'}
        if auth:
            token = await self.auth_store.require_token()
            headers['Authorization'] = f'Bearer {token}'

        url = self.full_url(endpoint)
        attempt_timeout = self.timeout if timeout is None else timeout
        extra = self.retries if retries is None else retries

        kwargs: dict[str, Any] = {'headers': headers}
        if json is not None:
            kwargs['json'] = json
        if params:
            kwargs['params'] = params

        policy = RetryPolicy(
            max_attempts=extra + 1,
            backoff=linear_backoff(self.backoff_step),
            is_retryable=is_network_error,
            sleep=self.sleep
        )
        try:
            status, body = await policy.run(lambda: self._attempt(method, url, attempt_timeout, **kwargs))
        except NetworkError as e:
            logger.error(f"{method} {endpoint} failed after {extra + 1} attempts: {e.reason} ({e.message})")
            raise

        result = decode_response(status, body)
        if not result.ok:
            logger.warning(f"{method} {endpoint} -> {status} {result.code}: {result.message}")
        return result

    async def get(self, endpoint: str, **kwargs) -> ApiResult:
        return await self.request('GET', endpoint, **kwargs)

    async def post(self, endpoint: str, **kwargs) -> ApiResult:
        return await self.request('POST', endpoint, **kwargs)

    async def put(self, endpoint: str, **kwargs) -> ApiResult:
        return await self.request('PUT', endpoint, **kwargs)

    async def delete(self, endpoint: str, **kwargs) -> ApiResult:
        return await self.request('DELETE', endpoint, **kwargs)
