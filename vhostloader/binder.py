"""Loads one domain module and mounts its handler, or a 500 fallback."""

from __future__ import annotations

import asyncio
import dataclasses
import hashlib
import importlib.util
import logging
import os
import re
import sys
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from types import ModuleType
from typing import Any, Optional, Union

from starlette.concurrency import run_in_threadpool

from .errors import (
    ExportNotFound,
    InvalidDomainName,
    InvalidDomainType,
    InvalidFieldType,
    InvalidSettingsType,
    MissingDomain,
    ModuleLoadError,
    ModuleNotFound,
)
from .fallback import load_error_handler, missing_export_handler, missing_module_handler
from .resolver import (
    DEFAULT_EXPORT,
    DEFAULT_MAIN_FILE,
    is_safe_domain_name,
    resolve,
)
from .router import as_router

_MODULE_NAME_UNSAFE = re.compile(r"\W")
_LOAD_LOCK = threading.Lock()


@dataclass(frozen=True)
class RegistrationRequest:
    domain_name: str
    main_file: str = DEFAULT_MAIN_FILE
    export_name: str = DEFAULT_EXPORT
    base_folder: Optional[str] = None
    debug: bool = False
    called_from_scan: bool = False


@dataclass(frozen=True)
class Confirmation:
    domain: str
    path: str
    message: str
    called_from_scan: bool = False


def _is_unset(value: Any) -> bool:
    return value is None or value == ""


def _string_field(values: Mapping[str, Any], field: str, default: str) -> str:
    value = values.get(field)
    if _is_unset(value):
        return default
    if not isinstance(value, str):
        raise InvalidFieldType(field)
    return value


def _bool_field(values: Mapping[str, Any], field: str) -> bool:
    value = values.get(field)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise InvalidFieldType(field, "a boolean")
    return value


def _settings_values(settings: Any) -> Mapping[str, Any]:
    if isinstance(settings, RegistrationRequest):
        return dataclasses.asdict(settings)
    if isinstance(settings, Mapping):
        return settings
    raise InvalidSettingsType()


def build_request(values: Mapping[str, Any]) -> RegistrationRequest:
    domain = values.get("domain_name")
    if _is_unset(domain):
        raise MissingDomain()
    if not isinstance(domain, str):
        raise InvalidDomainType()
    if not is_safe_domain_name(domain):
        raise InvalidDomainName(domain)

    return RegistrationRequest(
        domain_name=domain,
        main_file=_string_field(values, "main_file", DEFAULT_MAIN_FILE),
        export_name=_string_field(values, "export_name", DEFAULT_EXPORT),
        base_folder=_string_field(values, "base_folder", os.getcwd()),
        debug=_bool_field(values, "debug"),
        called_from_scan=_bool_field(values, "called_from_scan"),
    )


def _module_name(domain: str, path: str) -> str:
    stem = _MODULE_NAME_UNSAFE.sub("_", os.path.splitext(os.path.basename(path))[0])
    digest = hashlib.sha1(path.encode("utf-8")).hexdigest()[:12]
    return f"vhost_{_MODULE_NAME_UNSAFE.sub('_', domain)}_{stem}_{digest}"


def _is_within(module: Optional[ModuleType], folder: str) -> bool:
    module_file = getattr(module, "__file__", None)
    if not module_file:
        return False
    return os.path.abspath(module_file).startswith(folder + os.sep)


def load_module(path: str, domain: str) -> ModuleType:
    """Execute the module file at *path* under a per-domain module name.

    The module is loaded as a package rooted at its domain folder, so
    ``from . import views`` works. The folder is also on ``sys.path`` while
    the module executes, for plain ``import views``; top-level modules
    imported that way are dropped from ``sys.modules`` afterwards so two
    domains never share a sibling module of the same name.

    The module is executed again on every call, so a rebind picks up
    changes made on disk.
    """
    folder = os.path.dirname(path)
    module_name = _module_name(domain, path)
    spec = importlib.util.spec_from_file_location(
        module_name, path, submodule_search_locations=[folder]
    )
    if spec is None or spec.loader is None:
        raise ImportError(f"Could not create module spec for {path}")

    with _LOAD_LOCK:
        for name in [n for n in sys.modules if n.startswith(module_name + ".")]:
            sys.modules.pop(name, None)
        before = set(sys.modules)
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        sys.path.insert(0, folder)
        try:
            spec.loader.exec_module(module)
        except BaseException:
            sys.modules.pop(module_name, None)
            raise
        finally:
            sys.path.remove(folder)
            for name in set(sys.modules) - before:
                if name.startswith(module_name):
                    continue
                if _is_within(sys.modules.get(name), folder):
                    sys.modules.pop(name, None)
    return module


class Binder:
    def __init__(
        self, logger: Union[logging.Logger, logging.LoggerAdapter, None] = None
    ) -> None:
        self.logger = logger or logging.getLogger(__name__)

    async def bind(self, settings: Any, router: Any) -> Confirmation:
        """Bind one domain to the handler exported by its module file.

        Validation errors are raised before anything is mounted. Once the
        request is valid exactly one handler is mounted for the domain:
        the exported one, or a 500 fallback if the module is missing,
        fails to load, or lacks a callable export. In the fallback cases
        the matching ``BindError`` is raised after mounting.
        """
        values = _settings_values(settings)
        mountable = as_router(router)
        request = build_request(values)
        domain = request.domain_name
        mode = "automatically" if request.called_from_scan else "manually"

        resolved = await run_in_threadpool(
            resolve,
            request.base_folder,
            domain,
            request.main_file,
            request.export_name,
        )
        self.logger.debug("Trying to access %s file...", resolved.path)

        if not resolved.exists:
            mountable.mount(
                domain, missing_module_handler(resolved.path, debug=request.debug)
            )
            error = ModuleNotFound(domain=domain, path=resolved.path)
            self.logger.error(str(error))
            raise error

        self.logger.debug("Loading %s module...", resolved.path)
        try:
            module = await run_in_threadpool(load_module, resolved.path, domain)
        except (KeyboardInterrupt, asyncio.CancelledError):
            raise
        except BaseException as exc:
            mountable.mount(
                domain, load_error_handler(resolved.path, exc, debug=request.debug)
            )
            error = ModuleLoadError(domain=domain, path=resolved.path, cause=exc)
            self.logger.error(str(error), exc_info=exc)
            raise error from exc

        handler = getattr(module, request.export_name, None)
        if handler is None or not callable(handler):
            mountable.mount(
                domain,
                missing_export_handler(
                    request.export_name, resolved.path, debug=request.debug
                ),
            )
            error = ExportNotFound(
                domain=domain, export=request.export_name, path=resolved.path
            )
            self.logger.error("%s (%s)", error, mode)
            raise error

        mountable.mount(domain, handler)
        message = f'"{domain}" module ({mode}) loaded as an ASGI application.'
        self.logger.info(message)
        return Confirmation(
            domain=domain,
            path=resolved.path,
            message=message,
            called_from_scan=request.called_from_scan,
        )
