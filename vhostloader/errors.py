from __future__ import annotations

from html import escape
from http import HTTPStatus
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

GENERIC_MESSAGE = "Sorry, something went wrong."


class AutoloaderError(Exception):
    error_code = "autoloader_error"


class SettingsError(AutoloaderError):
    """Raised before any filesystem access or router mount."""

    error_code = "invalid_settings"


class InvalidSettingsType(SettingsError, TypeError):
    error_code = "invalid_settings_type"

    def __init__(self, name: str = "settings") -> None:
        super().__init__(f'"{name}" must be a mapping or a registration request.')


class MissingRouter(SettingsError, LookupError):
    error_code = "missing_router"

    def __init__(self) -> None:
        super().__init__("A router exposing mount(domain, handler) is required.")


class MissingDomain(SettingsError, LookupError):
    error_code = "missing_domain"

    def __init__(self) -> None:
        super().__init__('"domain_name" is required.')


class InvalidDomainType(SettingsError, TypeError):
    error_code = "invalid_domain_type"

    def __init__(self) -> None:
        super().__init__('"domain_name" is expected to be a string.')


class InvalidDomainName(SettingsError, ValueError):
    error_code = "invalid_domain_name"

    def __init__(self, domain: str) -> None:
        self.domain = domain
        super().__init__(
            f'"domain_name" {domain!r} must be a single folder name, '
            "not a path."
        )


class InvalidFieldType(SettingsError, TypeError):
    error_code = "invalid_field_type"

    def __init__(self, field: str, expected: str = "a string") -> None:
        self.field = field
        super().__init__(f'"{field}" is expected to be {expected}.')


class InvalidFolderType(SettingsError, TypeError):
    error_code = "invalid_folder_type"

    def __init__(self) -> None:
        super().__init__('"base_folder" must be a string.')


class BindError(AutoloaderError):
    """A domain could not be bound to its own handler.

    The domain is still served: a fallback handler answering 500 has been
    mounted for it by the time this is raised.
    """

    error_code = "bind_failed"

    def __init__(self, message: str, *, domain: str, path: str) -> None:
        self.domain = domain
        self.path = path
        super().__init__(message)


class ModuleNotFound(BindError):
    error_code = "module_not_found"

    def __init__(self, *, domain: str, path: str) -> None:
        super().__init__(
            f'Module file for "{domain}" not found at {path}.',
            domain=domain,
            path=path,
        )


class ExportNotFound(BindError):
    error_code = "export_not_found"

    def __init__(self, *, domain: str, export: str, path: str) -> None:
        self.export = export
        super().__init__(
            f'Failed to load "{domain}" module. '
            f'Callable "{export}" not found in "{path}".',
            domain=domain,
            path=path,
        )


class ModuleLoadError(BindError):
    error_code = "module_load_failed"

    def __init__(self, *, domain: str, path: str, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(
            f'Failed to execute "{domain}" module "{path}": '
            f"{type(cause).__name__}: {cause}",
            domain=domain,
            path=path,
        )


class ScanError(AutoloaderError):
    error_code = "scan_failed"


class DirectoryUnreadable(ScanError):
    error_code = "directory_unreadable"

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Cannot read the virtual hosts folder: {path}.")


def _status_title(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


def _normalize_detail(detail: Any) -> str:
    if isinstance(detail, dict):
        return str(detail.get("detail", "Request failed"))
    if detail is None:
        return "Request failed"
    return str(detail)


def error_page(status_code: int, body_html: str) -> str:
    """Render a minimal HTML error document.

    ``body_html`` is inserted as-is; callers escape any untrusted text.
    """
    heading = f"Error {status_code} : {escape(_status_title(status_code))}"
    return (
        '<!doctype html><html lang="en"><head><meta charset="utf-8">'
        f"<title>{heading}</title></head>"
        f"<body><h1>{heading}</h1><p>{body_html}</p></body></html>"
    )


def error_response(
    *,
    status_code: int,
    body_html: str,
    headers: dict[str, str] | None = None,
) -> HTMLResponse:
    return HTMLResponse(
        content=error_page(status_code, body_html),
        status_code=status_code,
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def _http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> HTMLResponse:
        return error_response(
            status_code=exc.status_code,
            body_html=escape(_normalize_detail(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(
        request: Request, _: Exception
    ) -> HTMLResponse:
        return error_response(status_code=500, body_html=GENERIC_MESSAGE)
