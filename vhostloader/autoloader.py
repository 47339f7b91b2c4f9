from __future__ import annotations

import logging
from typing import Any, Optional, Union

from .binder import Binder, Confirmation
from .errors import MissingRouter
from .router import Mountable, as_router
from .scanner import Scanner, ScanOutcome, ScanSkip


class VirtualHostAutoloader:
    """Binds domain folders to virtual hosts, sharing one logger.

    The last valid router handed to any call is remembered, so later calls
    may leave the router out.
    """

    def __init__(
        self, logger: Union[logging.Logger, logging.LoggerAdapter, None] = None
    ) -> None:
        self.logger = logger or logging.getLogger("vhostloader")
        self.binder = Binder(self.logger)
        self.scanner = Scanner(self.binder, self.logger)
        self.router: Optional[Mountable] = None

    def _router(self, router: Any) -> Any:
        if router is None:
            return self.router
        try:
            self.router = as_router(router)
        except MissingRouter:
            # Left for the binder or scanner to reject in validation order.
            return router
        return self.router

    async def __call__(self, router: Any, settings: Any = None) -> list[ScanOutcome]:
        return await self.scan(router, settings)

    async def bind(self, settings: Any, router: Any = None) -> Confirmation:
        return await self.binder.bind(settings, self._router(router))

    async def load_entry(
        self, entry: str, router: Any = None, settings: Any = None
    ) -> Union[Confirmation, ScanSkip]:
        return await self.scanner.load_entry(entry, self._router(router), settings)

    async def scan(self, router: Any = None, settings: Any = None) -> list[ScanOutcome]:
        return await self.scanner.scan(self._router(router), settings)


autoloader = VirtualHostAutoloader()

bind = autoloader.bind
load_entry = autoloader.load_entry
scan = autoloader.scan
