"""
Option resolver: turns a caller's ``FetchOptions`` (or keyword overrides)
into the frozen ``ResolvedOptions`` every other component reads.
"""

from __future__ import annotations

from dataclasses import replace
from enum import Enum
from numbers import Real
from typing import Any, Optional, Type, TypeVar

import httpx

from .exceptions import AbortError, InvalidRedirectModeError, InvalidSettingsError
from .models.options import (
    CacheMode,
    CredentialsMode,
    FetchOptions,
    RedirectMode,
    ResolvedOptions,
)
from .models.request import RequestBody

E = TypeVar("E", bound=Enum)


def _coerce_enum(enum_type: Type[E], value: Any) -> Optional[E]:
    try:
        return enum_type(value)
    except (ValueError, TypeError):
        return None


def _resolve_timeout(value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, Real) or value < 0:
        raise InvalidSettingsError(message="", setting_name="timeout", setting_value=value)
    return float(value)


def resolve_options(options: Optional[FetchOptions] = None, **overrides: Any) -> ResolvedOptions:
    """
    Validate and expand per-call options.

    Keyword overrides are applied on top of ``options`` (or of the defaults
    when ``options`` is None).

    Raises:
        InvalidRedirectModeError: redirect is not follow/manual/error
        InvalidSettingsError: cache, credentials or timeout hold invalid values
        AbortError: the signal is already aborted
    """
    if options is None:
        options = FetchOptions(**overrides)
    elif overrides:
        options = replace(options, **overrides)

    if options.redirect is None:
        redirect = RedirectMode.FOLLOW
    else:
        redirect = _coerce_enum(RedirectMode, options.redirect)
        if redirect is None:
            raise InvalidRedirectModeError(message="", value=options.redirect)

    cache: Optional[CacheMode] = None
    if options.cache is not None:
        cache = _coerce_enum(CacheMode, options.cache)
        if cache is None:
            raise InvalidSettingsError(message="", setting_name="cache", setting_value=options.cache)

    if options.credentials is None:
        credentials = CredentialsMode.OMIT
    else:
        credentials = _coerce_enum(CredentialsMode, options.credentials)
        if credentials is None:
            raise InvalidSettingsError(
                message="", setting_name="credentials", setting_value=options.credentials
            )

    timeout_ms = _resolve_timeout(options.timeout)

    signal = options.signal
    if signal is not None and signal.aborted:
        raise AbortError(message="", reason=signal.reason)

    return ResolvedOptions(
        method=str(options.method).upper() if options.method else None,
        headers=httpx.Headers(options.headers) if options.headers is not None else None,
        body=RequestBody.coerce(options.body),
        redirect=redirect,
        cache=cache,
        credentials=credentials,
        timeout_ms=timeout_ms,
        signal=signal,
    )
