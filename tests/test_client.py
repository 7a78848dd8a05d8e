from __future__ import annotations

import io

import pytest
from fastapi.testclient import TestClient

from core.exceptions import ClientError
from services.client import SosClient
from services.client.cli import main


@pytest.fixture()
def sos(app):
    return SosClient(http_client=TestClient(app))


def test_bucket_operations(sos):
    """Create, list and delete buckets through the client."""
    sos.create_bucket("photos")
    sos.create_bucket("docs")

    assert sorted(sos.list_buckets()) == ["docs", "photos"]

    sos.delete_bucket("docs")
    assert sos.list_buckets() == ["photos"]


def test_object_round_trip(sos):
    """Upload and download an object through the client."""
    payload = b"\x00\x01binary\xff" * 10000

    sos.put_object("photos", "2024/a.jpg", io.BytesIO(payload))

    assert sos.list_objects("photos") == ["2024/a.jpg"]
    assert sos.get_object("photos", "2024/a.jpg") == payload


def test_keys_are_url_quoted(sos):
    """Keys with spaces and slashes survive the round trip."""
    sos.put_object("photos", "summer trip/#1?.jpg", b"x")

    assert sos.list_objects("photos") == ["summer trip/#1?.jpg"]
    assert sos.get_object("photos", "summer trip/#1?.jpg") == b"x"


def test_download_object(sos, tmp_path):
    """Stream an object into a local file."""
    sos.put_object("b", "k", b"streamed")
    destination = tmp_path / "out.bin"

    written = sos.download_object("b", "k", destination)

    assert written == len(b"streamed")
    assert destination.read_bytes() == b"streamed"


def test_download_missing_object_creates_no_file(sos, tmp_path):
    """A failed download leaves no file behind."""
    destination = tmp_path / "out.bin"

    with pytest.raises(ClientError) as excinfo:
        sos.download_object("b", "missing", destination)

    assert excinfo.value.status_code == 404
    assert not destination.exists()


def test_errors_carry_status_and_body(sos):
    """ClientError carries the HTTP status and response body."""
    sos.create_bucket("b")

    with pytest.raises(ClientError) as excinfo:
        sos.delete_object("b", "missing")

    assert excinfo.value.status_code == 500
    assert "b/missing" in excinfo.value.body


def test_cli_put_list_get_remove(sos, tmp_path, capsys):
    """Drive every CLI subcommand against the app."""
    source = tmp_path / "in.txt"
    source.write_bytes(b"hello")
    target = tmp_path / "out.txt"

    assert main(["put", "docs", "notes/in.txt", str(source)], client=sos) == 0
    assert main(["ls-buckets"], client=sos) == 0
    assert main(["lsObjects", "docs"], client=sos) == 0
    assert main(["get", "docs", "notes/in.txt", str(target)], client=sos) == 0
    assert main(["rm-object", "docs", "notes/in.txt"], client=sos) == 0
    assert main(["rmBucket", "docs"], client=sos) == 0

    out = capsys.readouterr().out.splitlines()
    assert out == ["docs", "notes/in.txt"]
    assert target.read_bytes() == b"hello"


def test_cli_reports_failures(sos, capsys):
    """CLI prints the error and exits non-zero."""
    assert main(["rm-object", "docs", "missing"], client=sos) == 1

    assert "error:" in capsys.readouterr().err


def test_cli_without_command_prints_help(capsys):
    """No subcommand prints usage."""
    assert main([]) == 0

    assert "usage: sos" in capsys.readouterr().out
