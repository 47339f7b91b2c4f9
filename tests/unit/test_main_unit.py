import textwrap

import pytest
from fastapi.testclient import TestClient
from starlette.middleware.trustedhost import TrustedHostMiddleware
from vhostloader import errors, main
from vhostloader.config import Settings

pytestmark = pytest.mark.unit

OK_APP = """
from starlette.responses import PlainTextResponse

app = PlainTextResponse("It works!")
"""


def _settings(folder, **overrides):
    return Settings(_env_file=None, folder=str(folder), **overrides)


def _write_module(root, domain, source):
    folder = root / domain
    folder.mkdir(parents=True, exist_ok=True)
    (folder / "app.py").write_text(textwrap.dedent(source))


def test_startup_scan_mounts_domains(tmp_path):
    _write_module(tmp_path, "localhost", OK_APP)
    server = main.create_app(_settings(tmp_path))

    with TestClient(server, base_url="http://localhost") as client:
        response = client.get("/")

    assert response.status_code == 200
    assert response.text == "It works!"
    assert [outcome.domain for outcome in server.state.scan_outcomes] == ["localhost"]


def test_startup_scan_can_be_disabled(tmp_path):
    _write_module(tmp_path, "localhost", OK_APP)
    server = main.create_app(_settings(tmp_path, scan_on_startup=False))

    with TestClient(server, base_url="http://localhost") as client:
        response = client.get("/")

    assert response.status_code == 404
    assert server.state.scan_outcomes is None


def test_startup_fails_on_unreadable_folder(tmp_path):
    server = main.create_app(_settings(tmp_path / "missing"))

    with pytest.raises(errors.DirectoryUnreadable):
        with TestClient(server):
            pass


def test_admin_host_reports_health_and_readiness(tmp_path):
    _write_module(tmp_path, "localhost", OK_APP)
    _write_module(tmp_path, "broken.test", "handler = None\n")
    (tmp_path / "empty.test").mkdir()
    server = main.create_app(_settings(tmp_path, admin_host="admin.local"))

    with TestClient(server, base_url="http://admin.local") as client:
        health = client.get("/health")
        ready = client.get("/ready")

    assert health.json() == {"status": "ok"}
    assert ready.status_code == 200
    assert ready.json()["domains"] == {
        "bound": ["localhost"],
        "failed": {"broken.test": "export_not_found"},
        "skipped": ["empty.test"],
    }


def test_admin_host_is_not_ready_before_scan(tmp_path):
    server = main.create_app(
        _settings(tmp_path, admin_host="admin.local", scan_on_startup=False)
    )

    with TestClient(server, base_url="http://admin.local") as client:
        response = client.get("/ready")

    assert response.status_code == 503


def test_admin_host_wins_over_domain_folder_with_same_name(tmp_path):
    _write_module(tmp_path, "admin.local", OK_APP)
    server = main.create_app(_settings(tmp_path, admin_host="admin.local"))

    with TestClient(server, base_url="http://admin.local") as client:
        assert client.get("/health").json() == {"status": "ok"}


def test_trusted_hosts_middleware_is_optional(tmp_path):
    plain = main.create_app(_settings(tmp_path))
    guarded = main.create_app(_settings(tmp_path, trusted_hosts=["localhost"]))

    assert TrustedHostMiddleware not in [m.cls for m in plain.user_middleware]
    assert TrustedHostMiddleware in [m.cls for m in guarded.user_middleware]


def test_unhandled_domain_errors_render_generic_page(tmp_path):
    _write_module(
        tmp_path,
        "localhost",
        """
        async def app(scope, receive, send):
            raise RuntimeError("domain bug")
        """,
    )
    server = main.create_app(_settings(tmp_path))

    with TestClient(
        server, base_url="http://localhost", raise_server_exceptions=False
    ) as client:
        response = client.get("/")

    assert response.status_code == 500
    assert errors.GENERIC_MESSAGE in response.text
