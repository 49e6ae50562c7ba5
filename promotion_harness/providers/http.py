"""Shared response handling for provider REST calls."""

import json
import logging
from collections.abc import Awaitable, Callable, Collection
from typing import Any

import aiohttp

from promotion_harness.errors import (
    NotFoundError,
    ProviderConnectionError,
    ProviderRequestError,
)
from promotion_harness.retry import Continue, Outcome, RetryPolicy, Stop, Success, retry

log = logging.getLogger(__name__)

TRANSIENT_STATUSES: frozenset[int] = frozenset([429, 500, 502, 503, 504])

NO_RETRY = RetryPolicy(retries=0)


def provider_error_code(text: str) -> str | None:
    """Extract a provider error code from a JSON error body, if present."""
    try:
        body = json.loads(text)
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    for key in ("error_code", "errorCode", "code", "reason", "error"):
        value = body.get(key)
        if isinstance(value, (str, int)) and not isinstance(value, bool):
            return str(value)
    return None


async def check_response(
    response: aiohttp.ClientResponse,
    action: str,
    expected: Collection[int] = (200,),
) -> None:
    """Raise a typed error when the response status is not expected."""
    if response.status in expected:
        return
    text = await response.text()
    error_cls = NotFoundError if response.status == 404 else ProviderRequestError
    raise error_cls(
        f"Failed to {action}: {response.status} {text}",
        status=response.status,
        provider_error_code=provider_error_code(text),
    )


async def read_json(response: aiohttp.ClientResponse) -> Any:
    if response.status == 204:
        return None
    return await response.json(content_type=None)


async def read_text(response: aiohttp.ClientResponse) -> str:
    return await response.text()


async def request_json(
    session: aiohttp.ClientSession,
    method: str,
    url: str,
    *,
    action: str,
    policy: RetryPolicy,
    expected: Collection[int] = (200,),
    read: Callable[[aiohttp.ClientResponse], Awaitable[Any]] = read_json,
    **kwargs: Any,
) -> Any:
    """Send a request and decode its body, retrying transient failures.

    Server errors, rate limiting and connection errors are retried according
    to the policy. Other unexpected statuses fail immediately.

    Args:
        session: Provider session, usually created with a base URL
        method: HTTP method
        url: Request URL, relative to the session base URL
        action: Short description used in error messages ("list pipelines")
        policy: Retry budget for transient failures
        expected: Statuses treated as success
        read: Body decoder, JSON by default
        **kwargs: Passed to ``ClientSession.request``

    Returns:
        The decoded body

    Raises:
        NotFoundError: The resource does not exist
        ProviderRequestError: The provider rejected the request
        ProviderConnectionError: Transient failures persisted after all attempts

    """

    async def attempt() -> Outcome[Any]:
        try:
            async with session.request(method, url, **kwargs) as response:
                await check_response(response, action, expected)
                return Success(await read(response))
        except ProviderRequestError as e:
            if e.status in TRANSIENT_STATUSES:
                return Continue(e)
            return Stop(e)
        except aiohttp.ClientError as e:
            return Continue(e)

    def on_retry(error: BaseException, attempt_number: int) -> None:
        log.warning(
            "Retrying %s %s (attempt %d/%d): %s",
            method,
            url,
            attempt_number,
            policy.max_attempts,
            error,
        )

    try:
        return await retry(attempt, policy, on_retry=on_retry)
    except ProviderRequestError as e:
        if e.status not in TRANSIENT_STATUSES:
            raise
        raise ProviderConnectionError(
            f"Failed to {action} after {policy.max_attempts} attempts: {e}",
            attempts=policy.max_attempts,
        ) from e
    except aiohttp.ClientError as e:
        raise ProviderConnectionError(
            f"Failed to {action} after {policy.max_attempts} attempts: {e}",
            attempts=policy.max_attempts,
        ) from e
