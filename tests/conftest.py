from __future__ import annotations

import socket
from pathlib import Path

import pytest
from hypothesis import settings
from hypothesis.database import DirectoryBasedExampleDatabase

_ALLOWED_MARKERS = {"unit", "integration", "slow"}

_ROOT = Path(__file__).resolve().parents[1]
_HYPOTHESIS_DB = _ROOT / "artifacts/.hypothesis/examples"
settings.register_profile("watchdog", database=DirectoryBasedExampleDatabase(_HYPOTHESIS_DB))
settings.load_profile("watchdog")


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        names = {mark.name for mark in item.iter_markers()}
        if not names.intersection(_ALLOWED_MARKERS):
            item.add_marker("unit")


@pytest.fixture(autouse=True)
def no_network_for_unit(request: pytest.FixtureRequest, monkeypatch: pytest.MonkeyPatch) -> None:
    if request.node.get_closest_marker("integration") or request.node.get_closest_marker("slow"):
        return

    def _blocked(*_args: object, **_kwargs: object) -> socket.socket:
        raise RuntimeError("network disabled in unit tests")

    def _blocked_connect(*_args: object, **_kwargs: object) -> None:
        raise RuntimeError("network disabled in unit tests")

    monkeypatch.setattr(socket, "create_connection", _blocked)
    monkeypatch.setattr(socket.socket, "connect", _blocked_connect)


@pytest.fixture
def chart_values() -> str:
    return (
        "# Default values for dify.\n"
        "global:\n"
        "  host: \"\"\n"
        "\n"
        "api:\n"
        "  enabled: true\n"
        "  image:\n"
        "    repository: langgenius/dify-api\n"
        "    # Overrides the image tag whose default is the chart appVersion.\n"
        "    tag: \"1.8.1\"\n"
        "  replicas: 1\n"
        "worker:\n"
        "  image:\n"
        "    repository: langgenius/dify-api\n"
        "    tag: \"1.8.1\"\n"
        "web:\n"
        "  image:\n"
        "    repository: langgenius/dify-web\n"
        "    tag: '1.8.1'   # web ui\n"
        "sandbox:\n"
        "  repository: langgenius/dify-sandbox\n"
        "  tag: 0.2.12\n"
        "externalServices:\n"
        "  - name: redis\n"
        "    image:\n"
        "      repository: bitnami/redis\n"
        "      tag: 7.2.4\n"
        "  - name: postgres\n"
        "    image:\n"
        "      repository: bitnami/postgresql\n"
        "      tag: 15.3.0\n"
    )
