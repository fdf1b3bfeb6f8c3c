from __future__ import annotations

import base64
import socket
from pathlib import Path

import pytest

from cli.wiring import server_version_fetcher
from sonar_maven.io.settings import MavenSettings, ProxySettings
from support.proxy import ProxyServer, VersionServer


@pytest.fixture(autouse=True)
def no_proxy_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("NO_PROXY", "no_proxy", "HTTP_PROXY", "http_proxy", "HTTPS_PROXY", "https_proxy", "ALL_PROXY", "all_proxy"):
        monkeypatch.delenv(name, raising=False)


def _settings(tmp_path: Path, proxy: ProxySettings) -> MavenSettings:
    return MavenSettings(local_repository=tmp_path / "m2", proxies=[proxy])


def test_version_check_goes_through_authenticated_proxy(tmp_path: Path) -> None:
    with VersionServer("10.4.1.88267") as backend, ProxyServer(credentials=("scott", "tiger")) as proxy:
        settings = _settings(
            tmp_path,
            ProxySettings(id="p", host="127.0.0.1", port=proxy.port, username="scott", password="tiger"),
        )
        fetch = server_version_fetcher(settings, {"SONAR_TOKEN": "tkn"})

        assert fetch(backend.url) == "10.4.1.88267"

    assert proxy.requested_uris == [f"{backend.url}/api/server/version"]
    assert backend.authorization == ["Bearer tkn"]


def test_wrong_proxy_credentials_are_rejected(tmp_path: Path) -> None:
    with VersionServer("9.9") as backend, ProxyServer(credentials=("scott", "tiger")) as proxy:
        settings = _settings(
            tmp_path,
            ProxySettings(id="p", host="127.0.0.1", port=proxy.port, username="scott", password="wrong"),
        )

        assert server_version_fetcher(settings, {})(backend.url) is None

    assert proxy.requested_uris == []
    assert backend.authorization == []


def test_inactive_proxy_is_ignored(tmp_path: Path) -> None:
    with VersionServer("9.9") as backend:
        settings = _settings(tmp_path, ProxySettings(id="p", host="127.0.0.1", port=9, active=False))

        assert server_version_fetcher(settings, {})(backend.url) == "9.9"


def _read_until(sock: socket.socket, marker: bytes) -> bytes:
    data = b""
    while marker not in data:
        chunk = sock.recv(4096)
        if not chunk:
            break
        data += chunk
    return data


def _read_all(sock: socket.socket) -> bytes:
    data = b""
    while True:
        chunk = sock.recv(4096)
        if not chunk:
            return data
        data += chunk


def test_connect_tunnel_requires_auth_then_relays() -> None:
    with VersionServer("8.9") as backend, ProxyServer(credentials=("scott", "tiger")) as proxy:
        target = backend.url[len("http://"):]

        with socket.create_connection(("127.0.0.1", proxy.port), timeout=10) as sock:
            sock.sendall(f"CONNECT {target} HTTP/1.1\r\nHost: {target}\r\n\r\n".encode("ascii"))
            denied = _read_until(sock, b"\r\n\r\n")
        assert b" 407 " in denied
        assert b'Basic realm="Private!"' in denied

        token = base64.b64encode(b"scott:tiger").decode("ascii")
        with socket.create_connection(("127.0.0.1", proxy.port), timeout=10) as sock:
            sock.sendall(
                f"CONNECT {target} HTTP/1.1\r\nHost: {target}\r\nProxy-Authorization: Basic {token}\r\n\r\n".encode("ascii")
            )
            established = _read_until(sock, b"\r\n\r\n")
            sock.sendall(f"GET /api/server/version HTTP/1.0\r\nHost: {target}\r\n\r\n".encode("ascii"))
            response = _read_all(sock)

    assert b" 200 " in established
    assert response.startswith(b"HTTP/1.0 200")
    assert response.endswith(b"\r\n\r\n8.9")
    assert proxy.requested_uris == [target]


def _status_for(proxy_port: int, target: str, credentials: bytes) -> bytes:
    token = base64.b64encode(credentials).decode("ascii")
    with socket.create_connection(("127.0.0.1", proxy_port), timeout=10) as sock:
        sock.sendall(
            f"GET {target} HTTP/1.0\r\nHost: 127.0.0.1\r\nProxy-Authorization: Basic {token}\r\n\r\n".encode("ascii")
        )
        return _read_all(sock).split(b"\r\n", 1)[0]


def test_proxy_credentials_are_latin1_and_need_a_user() -> None:
    with VersionServer("7.9") as backend, ProxyServer(credentials=("josé", "tiger")) as proxy:
        target = f"{backend.url}/api/server/version"

        assert b" 200 " in _status_for(proxy.port, target, "josé:tiger".encode("latin-1"))
        assert b" 407 " in _status_for(proxy.port, target, "josé:tiger".encode("utf-8"))

    with VersionServer("7.9") as backend, ProxyServer(credentials=("", "tiger")) as proxy:
        assert b" 407 " in _status_for(proxy.port, f"{backend.url}/api/server/version", b":tiger")
        assert proxy.requested_uris == []
