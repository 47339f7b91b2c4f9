"""Per-domain ASGI applications discovered on disk and served by virtual host.

Lay out one folder per domain under a base folder::

    vhosts/
        www.example.com/app.py   # app = FastAPI()
        api.example.com/app.py

and call ``await scan(server, {"base_folder": "vhosts"})`` to mount each
``app`` on its host name.
"""

from .autoloader import VirtualHostAutoloader, autoloader, bind, load_entry, scan
from .binder import Confirmation, RegistrationRequest
from .router import HostRouter, Mountable, as_router
from .scanner import ScanSkip

__all__ = [
    "Confirmation",
    "HostRouter",
    "Mountable",
    "RegistrationRequest",
    "ScanSkip",
    "VirtualHostAutoloader",
    "as_router",
    "autoloader",
    "bind",
    "load_entry",
    "scan",
]
