"""Mountable route providers.

Route modules owned by other teams (auth, users) plug into the service as
providers: a URL prefix plus a router. The service mounts them without knowing
anything about their request or response shapes.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from fastapi import APIRouter, FastAPI

AUTH_PREFIX = "/api/auth"
USERS_PREFIX = "/api/users"


@runtime_checkable
class RouteProvider(Protocol):
    prefix: str

    def router(self) -> APIRouter: ...


@dataclass(frozen=True)
class RouterProvider:
    """Provider backed by a ready-made ``APIRouter``."""

    prefix: str
    api_router: APIRouter
    tags: list[str] = field(default_factory=list)

    def router(self) -> APIRouter:
        return self.api_router


def _validate_prefix(prefix: str) -> None:
    if not prefix.startswith("/"):
        raise ValueError(f"Route provider prefix must start with '/': {prefix!r}")
    if prefix.endswith("/"):
        raise ValueError(f"Route provider prefix must not end with '/': {prefix!r}")


def mount_route_providers(app: FastAPI, providers: Iterable[RouteProvider]) -> list[str]:
    """Include each provider's router under its prefix.

    Returns the mounted prefixes in order. Raises ``ValueError`` for a
    malformed or duplicated prefix before anything is mounted.
    """
    providers = list(providers)
    seen: set[str] = set()
    for provider in providers:
        if not isinstance(provider, RouteProvider):
            raise ValueError(f"Not a route provider: {provider!r}")
        _validate_prefix(provider.prefix)
        if provider.prefix in seen:
            raise ValueError(f"Duplicate route provider prefix: {provider.prefix!r}")
        seen.add(provider.prefix)

    for provider in providers:
        tags = list(getattr(provider, "tags", []) or [])
        app.include_router(provider.router(), prefix=provider.prefix, tags=tags or None)
    return [provider.prefix for provider in providers]
