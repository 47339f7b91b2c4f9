"""Maps a domain name onto the module file expected to serve it."""

from __future__ import annotations

import os
from dataclasses import dataclass

MODULE_SUFFIX = ".py"
DEFAULT_MAIN_FILE = "app"
DEFAULT_EXPORT = "app"


@dataclass(frozen=True)
class ResolvedModule:
    path: str
    exists: bool
    export: str = DEFAULT_EXPORT


def normalize_main_file(main_file: str) -> str:
    if main_file.endswith(MODULE_SUFFIX):
        return main_file[: -len(MODULE_SUFFIX)]
    return main_file


def is_safe_domain_name(domain: str) -> bool:
    if domain in {".", ".."} or os.path.isabs(domain):
        return False
    separators = {"/", os.sep}
    if os.altsep:
        separators.add(os.altsep)
    return not any(separator in domain for separator in separators)


def module_path(base_folder: str, domain: str, main_file: str) -> str:
    filename = normalize_main_file(main_file) + MODULE_SUFFIX
    return os.path.abspath(os.path.join(base_folder, domain, filename))


def is_readable(path: str) -> bool:
    # Advisory only: a readable file can still fail to import.
    return os.path.isfile(path) and os.access(path, os.R_OK)


def resolve(
    base_folder: str,
    domain: str,
    main_file: str = DEFAULT_MAIN_FILE,
    export: str = DEFAULT_EXPORT,
) -> ResolvedModule:
    path = module_path(base_folder, domain, main_file)
    return ResolvedModule(path=path, exists=is_readable(path), export=export)
