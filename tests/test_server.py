from __future__ import annotations

import argparse
from pathlib import Path
from unittest.mock import patch

import pytest

from services.api.server import build_parser, main, parse_listen, resolve_settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path):
    for name in ("SOS_CONFIG", "SOS_DATA_ROOT", "LOG_LEVEL", "JSON_LOGGING", "LOG_FILE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (":8080", ("0.0.0.0", 8080)),
        ("127.0.0.1:9000", ("127.0.0.1", 9000)),
        ("[::1]:8081", ("::1", 8081)),
        ("7000", ("0.0.0.0", 7000)),
    ],
)
def test_parse_listen(value, expected):
    """Test --listen parsing."""
    assert parse_listen(value) == expected


@pytest.mark.parametrize("value", ["localhost:http", ":0", ":70000"])
def test_parse_listen_rejects_garbage(value):
    """Malformed listen addresses are rejected."""
    with pytest.raises(argparse.ArgumentTypeError):
        parse_listen(value)


def test_flags_override_config(tmp_path):
    """Command-line flags win over the config file."""
    args = build_parser().parse_args(
        ["--data", str(tmp_path / "store"), "--listen", "127.0.0.1:9999", "--log-level", "debug"]
    )

    settings = resolve_settings(args)

    assert settings.storage.root == tmp_path / "store"
    assert settings.server.host == "127.0.0.1"
    assert settings.server.port == 9999
    assert settings.logging.level == "DEBUG"


def test_defaults_without_flags():
    """Without flags the config file values apply."""
    settings = resolve_settings(build_parser().parse_args([]))

    assert settings.storage.root == Path("./data")
    assert settings.server.port == 8080


def test_main_runs_uvicorn(tmp_path):
    """main() hands the app to uvicorn."""
    with patch("services.api.server.uvicorn.run") as run:
        main(["--data", str(tmp_path / "store"), "--listen", ":8181"])

    run.assert_called_once()
    _, kwargs = run.call_args
    assert kwargs["host"] == "0.0.0.0"
    assert kwargs["port"] == 8181
    assert (tmp_path / "store").is_dir()
