from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from starlette.applications import Starlette
from starlette.routing import Host
from starlette.types import ASGIApp

from .errors import MissingRouter


@runtime_checkable
class Mountable(Protocol):
    def mount(self, domain: str, handler: ASGIApp) -> None: ...


@dataclass(frozen=True)
class MountRecord:
    domain: str
    handler: ASGIApp


class HostRouter:
    """Mounts handlers on a Starlette application, one ``Host`` route each.

    Routes are matched in insertion order, so when a domain is mounted
    twice the first handler keeps serving it.
    """

    def __init__(self, app: Starlette) -> None:
        self.app = app
        self.mounts: list[MountRecord] = []

    def mount(self, domain: str, handler: ASGIApp) -> None:
        self.app.router.routes.append(Host(domain, app=handler))
        self.mounts.append(MountRecord(domain, handler))

    def mounts_for(self, domain: str) -> list[MountRecord]:
        return [record for record in self.mounts if record.domain == domain]


def as_router(candidate: Any) -> Mountable:
    if isinstance(candidate, Starlette):
        router = getattr(candidate.state, "host_router", None)
        if router is None:
            router = HostRouter(candidate)
            candidate.state.host_router = router
        return router
    if candidate is not None and callable(getattr(candidate, "mount", None)):
        return candidate
    raise MissingRouter()
