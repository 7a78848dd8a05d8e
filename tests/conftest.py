from __future__ import annotations

import pytest

from core.settings import Settings, StorageSettings
from core.storage.local import DiskBackend
from core.storage.memory import MemoryBackend
from services.api.main import create_app


@pytest.fixture()
def disk_backend(tmp_path):
    return DiskBackend(tmp_path / "data")


@pytest.fixture(params=["disk", "memory"])
def backend(request, tmp_path):
    """Every in-process backend, for contract tests."""
    if request.param == "disk":
        return DiskBackend(tmp_path / "data")
    return MemoryBackend()


@pytest.fixture()
def settings(tmp_path):
    return Settings(storage=StorageSettings(root=tmp_path / "data"))


@pytest.fixture()
def app(settings, disk_backend):
    return create_app(settings, backend=disk_backend)
