"""
Input normalizer: reduces a URL string, ``httpx.URL`` or ``Request`` plus
resolved options to a single ``RequestDescriptor``.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Union

import httpx

from .cookies import origin_of
from .exceptions import InvalidURLError, UnsupportedProtocolError
from .models.options import ResolvedOptions
from .models.request import Request, RequestBody, RequestDescriptor

SUPPORTED_SCHEMES = frozenset({"http", "https"})

Resource = Union[str, httpx.URL, Request]


def parse_url(url: str) -> httpx.URL:
    """
    Parse an absolute http(s) URL.

    Raises:
        InvalidURLError: the string is not an absolute URL
        UnsupportedProtocolError: the scheme is not http or https
    """
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError, ValueError) as exc:
        raise InvalidURLError(message="", url=url, cause=exc) from exc

    if not parsed.scheme:
        raise InvalidURLError(message="", url=url)
    if parsed.scheme not in SUPPORTED_SCHEMES:
        raise UnsupportedProtocolError(message="", url=url, scheme=parsed.scheme)
    if not parsed.host:
        raise InvalidURLError(message="", url=url)
    return parsed


async def normalize_input(resource: Resource, options: ResolvedOptions) -> RequestDescriptor:
    """
    Build the canonical descriptor for one call.

    For a ``Request`` the method and headers are adopted unless the options
    override them, and an unread body is materialized when the options
    carry none (textual bodies via ``await request.text()``).
    The returned ``url`` is the literal input string: dispatch target and cache key.
    """
    method = options.method
    headers = options.headers
    body = options.body

    if isinstance(resource, Request):
        url = resource.url
    elif isinstance(resource, httpx.URL):
        url = str(resource)
    elif isinstance(resource, str):
        url = resource
    else:
        raise InvalidURLError(message=f"Invalid URL: {resource!r}")

    parsed = parse_url(url)

    if isinstance(resource, Request):
        method = method or resource.method
        if headers is None:
            headers = resource.headers
        if body.is_absent and not resource.body.is_absent and not resource.body_used:
            if resource.body.is_textual:
                body = RequestBody.text(await resource.text())
            else:
                body = resource.body
        options = replace(options, method=method, headers=headers, body=body)

    return RequestDescriptor(
        url=url,
        origin=origin_of(parsed),
        method=method,
        headers=headers,
        body=body,
        options=options,
    )
