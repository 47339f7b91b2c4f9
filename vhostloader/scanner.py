"""Discovers domain folders under a root and binds each of them."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional, Union

from starlette.concurrency import run_in_threadpool

from .binder import Binder, Confirmation, RegistrationRequest
from .errors import (
    BindError,
    DirectoryUnreadable,
    InvalidFieldType,
    InvalidFolderType,
    InvalidSettingsType,
)
from .resolver import DEFAULT_MAIN_FILE, is_readable, module_path
from .router import Mountable, as_router


@dataclass(frozen=True)
class ScanSkip:
    entry: str
    reason: str
    path: str


ScanOutcome = Union[Confirmation, ScanSkip, BindError]


@dataclass(frozen=True)
class ScanSettings:
    base_folder: str
    debug: bool = False


def build_scan_settings(settings: Any) -> ScanSettings:
    if settings is None:
        settings = {}
    if not isinstance(settings, Mapping):
        raise InvalidSettingsType()
    folder = settings.get("base_folder")
    if folder is None or folder == "":
        folder = os.getcwd()
    if not isinstance(folder, str):
        raise InvalidFolderType()
    debug = settings.get("debug")
    if debug is None:
        debug = False
    if not isinstance(debug, bool):
        raise InvalidFieldType("debug", "a boolean")
    return ScanSettings(base_folder=folder, debug=debug)


def _entry_kind(path: str) -> Optional[str]:
    """Return None for a directory, otherwise why the entry is skipped."""
    try:
        if os.path.isdir(path):
            return None
        os.stat(path)
    except OSError as exc:
        return f"cannot read: {exc.strerror or exc}"
    return "not a directory"


class Scanner:
    def __init__(
        self,
        binder: Optional[Binder] = None,
        logger: Union[logging.Logger, logging.LoggerAdapter, None] = None,
    ) -> None:
        self.logger = logger or logging.getLogger(__name__)
        self.binder = binder or Binder(self.logger)

    async def load_entry(
        self, entry: str, router: Any, settings: Any = None
    ) -> Union[Confirmation, ScanSkip]:
        """Bind *entry* if it is a folder holding a readable main file.

        Returns a ``ScanSkip`` for entries that are not candidates. Raises
        ``BindError`` when a candidate fails to bind.
        """
        if not isinstance(entry, str):
            raise InvalidFieldType("entry")
        scan_settings = build_scan_settings(settings)
        return await self._load_entry(entry, as_router(router), scan_settings)

    async def _load_entry(
        self, entry: str, router: Mountable, settings: ScanSettings
    ) -> Union[Confirmation, ScanSkip]:
        entry_path = os.path.join(settings.base_folder, entry)
        reason = await run_in_threadpool(_entry_kind, entry_path)
        if reason is not None:
            self.logger.warning("Skipping %s: %s.", entry, reason)
            return ScanSkip(entry=entry, reason=reason, path=entry_path)

        main_file = module_path(settings.base_folder, entry, DEFAULT_MAIN_FILE)
        if not await run_in_threadpool(is_readable, main_file):
            self.logger.warning("Cannot read/find: %s.", main_file)
            return ScanSkip(entry=entry, reason="no readable main file", path=main_file)

        self.logger.debug("Loading %s module as an ASGI application.", main_file)
        request = RegistrationRequest(
            domain_name=entry,
            base_folder=settings.base_folder,
            debug=settings.debug,
            called_from_scan=True,
        )
        return await self.binder.bind(request, router)

    async def _outcome(
        self, entry: str, router: Mountable, settings: ScanSettings
    ) -> ScanOutcome:
        try:
            return await self._load_entry(entry, router, settings)
        except BindError as exc:
            return exc

    async def scan(self, router: Any, settings: Any = None) -> list[ScanOutcome]:
        """Bind every domain folder found directly under the base folder.

        Entries are handled concurrently and reported in sorted order, one
        outcome each. Only an unreadable base folder fails the scan.
        """
        mountable = as_router(router)
        scan_settings = build_scan_settings(settings)

        try:
            entries = await run_in_threadpool(os.listdir, scan_settings.base_folder)
        except OSError as exc:
            error = DirectoryUnreadable(scan_settings.base_folder)
            self.logger.error(str(error))
            raise error from exc

        outcomes = await asyncio.gather(
            *(
                self._outcome(entry, mountable, scan_settings)
                for entry in sorted(entries)
            )
        )
        return list(outcomes)
