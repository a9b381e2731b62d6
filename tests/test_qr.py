"""
Tests for LAN address detection, QR encoding and the /api/qr endpoint.
"""

from __future__ import annotations

import base64
import io
import socket
from collections import namedtuple

import pytest
from PIL import Image

from pokeblog import Qr
from pokeblog.Qr import build_pairing_url, get_local_ip, qr_data_url

Addr = namedtuple("Addr", "family address netmask broadcast ptp")


def _addr(family: int, address: str) -> Addr:
    return Addr(family, address, None, None, None)


LOOPBACK_ONLY = {
    "lo": [_addr(socket.AF_INET, "127.0.0.1"), _addr(socket.AF_INET6, "::1")],
}

WITH_LAN = {
    "lo": [_addr(socket.AF_INET, "127.0.0.1")],
    "wlan0": [
        _addr(socket.AF_INET6, "fe80::1"),
        _addr(socket.AF_INET, "192.168.1.42"),
    ],
    "eth1": [_addr(socket.AF_INET, "10.0.0.5")],
}


class TestGetLocalIp:
    """Interface scan used for the pairing URL."""

    def test_first_non_loopback_ipv4_wins(self) -> None:
        assert get_local_ip(WITH_LAN) == "192.168.1.42"

    def test_falls_back_to_localhost(self) -> None:
        assert get_local_ip(LOOPBACK_ONLY) == "localhost"

    def test_no_interfaces(self) -> None:
        assert get_local_ip({}) == "localhost"

    def test_other_loopback_addresses_are_skipped(self) -> None:
        interfaces = {"lo": [_addr(socket.AF_INET, "127.0.1.1")], "en0": [_addr(socket.AF_INET, "172.16.0.9")]}
        assert get_local_ip(interfaces) == "172.16.0.9"


def test_build_pairing_url() -> None:
    assert build_pairing_url("192.168.1.42", 3000) == "http://192.168.1.42:3000"


def test_qr_data_url_is_a_300px_png() -> None:
    data_url = qr_data_url("http://192.168.1.42:3000")
    prefix = "data:image/png;base64,"
    assert data_url.startswith(prefix)

    image = Image.open(io.BytesIO(base64.b64decode(data_url[len(prefix):])))
    assert image.format == "PNG"
    assert image.size == (300, 300)


class TestQrEndpoint:
    """GET /api/qr."""

    def test_returns_pairing_payload(self, client, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(Qr.psutil, "net_if_addrs", lambda: WITH_LAN)

        response = client.get("/api/qr")

        assert response.status_code == 200
        body = response.get_json()
        assert body["localIP"] == "192.168.1.42"
        assert body["port"] == 3000
        assert body["url"] == "http://192.168.1.42:3000"
        assert body["qrCode"].startswith("data:image/png;base64,")

    def test_localhost_fallback(self, client, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(Qr.psutil, "net_if_addrs", lambda: LOOPBACK_ONLY)

        body = client.get("/api/qr").get_json()

        assert body["url"] == "http://localhost:3000"
        assert body["localIP"] == "localhost"

    def test_failure_returns_500_json(self, client, monkeypatch: pytest.MonkeyPatch) -> None:
        def boom():
            raise OSError("no interfaces")

        monkeypatch.setattr(Qr.psutil, "net_if_addrs", boom)

        response = client.get("/api/qr")

        assert response.status_code == 500
        assert response.get_json() == {"error": "Failed to generate QR code"}
