"""Shared HTTP helpers used by the version index client and policy loader.

Encapsulates request/timeout error handling so callers avoid duplicating
try/except blocks. Failures are raised as engine exceptions; there is no
retry here, callers wanting one wrap the version source themselves.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

import requests

from depsteward.constants import Constants
from depsteward.common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer
from depsteward.exceptions import TransportError, VersionLookupTimeout

logger = logging.getLogger(__name__)

_DEFAULT_HEADERS = {"User-Agent": Constants.USER_AGENT}


def safe_get(
    url: str,
    *,
    context: str,
    timeout: Optional[float] = None,
    headers: Optional[Dict[str, str]] = None,
    **kwargs: Any,
) -> requests.Response:
    """Perform a GET request with consistent error handling and DEBUG traces.

    Args:
        url: Target URL.
        context: Human-readable source tag for logs (e.g., "maven", "policy").
        timeout: Seconds before giving up; defaults to ``Constants.REQUEST_TIMEOUT``.
        headers: Extra request headers.
        **kwargs: Passed through to ``requests.get``.

    Returns:
        requests.Response: The HTTP response object.

    Raises:
        VersionLookupTimeout: The request did not complete within ``timeout``.
        TransportError: Any other connection-level failure.
    """
    effective_timeout = timeout if timeout is not None else Constants.REQUEST_TIMEOUT
    safe_target = safe_url(url)
    merged_headers = {**_DEFAULT_HEADERS, **(headers or {})}

    with Timer() as t:
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP request",
                extra=extra_context(
                    event="http_request",
                    component="http_client",
                    action="GET",
                    target=safe_target,
                ),
            )
        try:
            res = requests.get(url, timeout=effective_timeout, headers=merged_headers, **kwargs)
        except requests.Timeout as exc:
            logger.error(
                "%s request timed out after %s seconds",
                context,
                effective_timeout,
                extra=extra_context(event="http_exception", outcome="timeout", target=safe_target),
            )
            raise VersionLookupTimeout(
                f"{context} request to {safe_target} timed out after {effective_timeout} seconds"
            ) from exc
        except requests.RequestException as exc:  # includes ConnectionError
            logger.error("%s connection error: %s", context, exc)
            raise TransportError(f"{context} request to {safe_target} failed: {exc}") from exc

    if is_debug_enabled(logger):
        logger.debug(
            "HTTP response",
            extra=extra_context(
                event="http_response",
                component="http_client",
                action="GET",
                status_code=res.status_code,
                duration_ms=t.duration_ms(),
                target=safe_target,
            ),
        )
    return res


def get_text(
    url: str,
    *,
    context: str,
    timeout: Optional[float] = None,
    headers: Optional[Dict[str, str]] = None,
) -> Tuple[int, Optional[str]]:
    """GET ``url`` and return ``(status_code, body)``.

    A 404 is a normal outcome and yields ``(404, None)``. Server errors are
    transport failures since the index state is unknown.
    """
    res = safe_get(url, context=context, timeout=timeout, headers=headers)
    if res.status_code == 404:
        return 404, None
    if res.status_code >= 500:
        raise TransportError(
            f"{context} request to {safe_url(url)} failed with HTTP {res.status_code}"
        )
    if res.status_code != 200:
        logger.warning(
            "HTTP non-2xx handled",
            extra=extra_context(
                event="http_response",
                outcome="handled_non_2xx",
                status_code=res.status_code,
                target=safe_url(url),
            ),
        )
        return res.status_code, None
    return res.status_code, res.text
