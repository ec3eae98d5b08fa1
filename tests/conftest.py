"""Pytest fixtures for firewalla-msp-mcp tests."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest


def make_status_error(status_code: int, body=None, text: str | None = None) -> httpx.HTTPStatusError:
    """Build a real HTTPStatusError for a failed MSP request."""
    request = httpx.Request("GET", "https://test.firewalla.net/v2/boxes")
    if body is not None:
        response = httpx.Response(status_code, json=body, request=request)
    else:
        response = httpx.Response(status_code, text=text or "", request=request)
    return httpx.HTTPStatusError(f"HTTP {status_code}", request=request, response=response)


@pytest.fixture
def status_error():
    return make_status_error


@pytest.fixture
def mock_client():
    """MspClient stand-in with async verb methods."""
    client = MagicMock()
    client.get = AsyncMock(return_value={"count": 0, "results": []})
    client.post = AsyncMock(return_value=None)
    client.put = AsyncMock(return_value=None)
    client.patch = AsyncMock(return_value=None)
    client.delete = AsyncMock(return_value=None)
    return client


@pytest.fixture
def sample_alarms():
    return {
        "count": 2,
        "results": [
            {
                "gid": "box-1",
                "aid": "101",
                "ts": 1720000000,
                "type": 1,
                "alarmType": "Security Activity",
                "message": "Suspicious traffic to a known botnet host",
                "device": {"name": "Laptop", "ip": "192.168.1.10"},
                "remote": {"domain": "evil.example", "country": "RU", "category": "intel"},
                "transfer": {"download": 2048, "upload": 1024},
            },
            {
                "gid": "box-1",
                "aid": "102",
                "ts": 1720000500,
                "type": 8,
                "status": "archived",
                "device": {"name": "Phone"},
            },
        ],
    }


@pytest.fixture
def sample_devices():
    return {
        "count": 3,
        "results": [
            {
                "mac": "AA:BB:CC:DD:EE:01",
                "ipAddress": "192.168.1.10",
                "name": "Laptop",
                "type": "computer",
                "online": True,
                "box": {"id": "box-1", "name": "Home Gold"},
                "lastActiveTime": 1720000000,
            },
            {
                "mac": "AA:BB:CC:DD:EE:02",
                "ip": "192.168.1.11",
                "name": "Phone",
                "type": "phone",
                "online": True,
                "boxName": "Home Gold",
            },
            {"mac": "AA:BB:CC:DD:EE:03", "online": False},
        ],
    }


@pytest.fixture
def sample_flows():
    return {
        "count": 2,
        "results": [
            {
                "ts": 1720000000,
                "device": {"name": "Laptop"},
                "domain": "video.example",
                "direction": "outbound",
                "protocol": "tcp",
                "sport": 51000,
                "dport": 443,
                "download": 1048576,
                "upload": 1024,
                "block": False,
            },
            {
                "ts": 1720000100,
                "device": {"name": "Phone"},
                "remote": {"ip": "203.0.113.9", "country": "US"},
                "direction": "inbound",
                "protocol": "udp",
                "download": 0,
                "upload": 0,
                "block": True,
            },
        ],
        "next_cursor": "flows-page-2",
    }


@pytest.fixture
def sample_boxes():
    return [
        {"gid": "box-1", "name": "Home Gold", "model": "gold", "online": True, "mode": "router", "version": "1.979"},
        {"gid": "box-2", "name": "Office Purple", "model": "purple", "online": False},
    ]


@pytest.fixture
def sample_rules():
    return [
        {
            "id": "rule-1",
            "action": "block",
            "direction": "outbound",
            "protocol": "tcp",
            "target": {"type": "domain", "value": "ads.example"},
            "status": "active",
        },
        {
            "id": "rule-2",
            "name": "Kids bedtime",
            "action": "time_limit",
            "target": {"type": "category", "value": "games"},
            "scope": {"type": "device", "value": "AA:BB:CC:DD:EE:02"},
            "schedule": {"type": "daily", "times": ["21:00-07:00"]},
            "status": "paused",
        },
    ]


@pytest.fixture
def sample_target_list():
    return {
        "id": "tl-1",
        "name": "Blocked hosts",
        "targets": ["10.0.0.1", "192.168.0.0/24", "ads.example"],
        "category": "ad",
    }
