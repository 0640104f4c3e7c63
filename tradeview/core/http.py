"""JSON-over-HTTP helper shared by the REST clients."""
import asyncio
import logging
from typing import Any, Optional

import aiohttp

from tradeview.core import config

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Raised for transport failures and non-2xx responses.

    `str(err)` is meant to be shown to the user as-is.
    """

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


def build_url(path: str, base_url: Optional[str] = None) -> str:
    base = (base_url or config.API_BASE_URL).rstrip("/")
    return f"{base}/{path.lstrip('/')}"


def _error_message(body: Any, status: int) -> str:
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    if isinstance(body, str) and body.strip():
        return body.strip()[:200]
    return f"Request failed with status {status}"


async def _read_body(resp) -> Any:
    text = await resp.text()
    if not text:
        return None
    try:
        return await resp.json(content_type=None)
    except ValueError:
        return text


async def _send(session, method: str, url: str, params=None, json=None) -> Any:
    async with session.request(method, url, params=params, json=json) as resp:
        body = await _read_body(resp)
        if not 200 <= resp.status < 300:
            logger.warning("%s %s returned status %s", method, url, resp.status)
            raise ApiError(_error_message(body, resp.status), status=resp.status)
        return body


async def request_json(
    method: str,
    path: str,
    params: Optional[dict] = None,
    json: Any = None,
    base_url: Optional[str] = None,
    session=None,
    timeout: Optional[float] = None,
) -> Any:
    """Send a request and return the decoded JSON body.

    A caller-provided `session` is used as-is and left open; otherwise a
    short-lived `aiohttp.ClientSession` is created for the call.
    """
    url = build_url(path, base_url)
    try:
        if session is not None:
            return await _send(session, method, url, params=params, json=json)
        client_timeout = aiohttp.ClientTimeout(total=timeout or config.HTTP_TIMEOUT)
        async with aiohttp.ClientSession(timeout=client_timeout) as own_session:
            return await _send(own_session, method, url, params=params, json=json)
    except ApiError:
        raise
    except asyncio.TimeoutError as e:
        raise ApiError(f"Request to {url} timed out") from e
    except aiohttp.ClientError as e:
        raise ApiError(f"Could not reach {url}: {e}") from e
