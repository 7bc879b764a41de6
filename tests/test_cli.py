"""Tests for the hostdiff CLI against a stubbed HTTP API."""

import json
import uuid

import httpx
import pytest
from click.testing import CliRunner

from hostdiff.cli.main import cli

API = "http://api.test"
IP = "125.199.235.74"
OLD_ID = str(uuid.uuid4())
NEW_ID = str(uuid.uuid4())


def _response(method: str, url: str, status_code: int, body) -> httpx.Response:
    return httpx.Response(status_code, json=body, request=httpx.Request(method, url))


def _snapshot(snapshot_id: str, services: list, os_name: str) -> dict:
    return {
        "id": snapshot_id,
        "ip_address": IP,
        "timestamp": "2025-10-16T12:00:00Z",
        "os_info": {"name": os_name},
        "services": services,
    }


REPORT = {
    "summary": "1 added, 0 removed, 0 changed, OS changed: yes, 1 CVEs added, 0 CVEs removed",
    "os_change": {"old_name": "Linux", "new_name": "Windows"},
    "added_services": [
        {
            "port": 443,
            "protocol": "tcp",
            "state": "open",
            "software": None,
            "tls": None,
            "vulnerabilities": ["CVE-2023-1234"],
        }
    ],
    "removed_services": [],
    "changed_services": [],
    "added_cves": ["CVE-2023-1234"],
    "removed_cves": [],
}


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def scan_file(tmp_path):
    path = tmp_path / f"host_{IP}_2025-10-16T12-00-00Z.json"
    path.write_text(json.dumps({"services": [{"port": 22, "protocol": "tcp"}]}))
    return path


def _invoke(runner, *args):
    return runner.invoke(cli, ["--api-url", API, *args])


def test_upload_stored(runner, scan_file, monkeypatch):
    calls = []

    def fake_post(url, files, timeout):
        calls.append((url, files["file"][0]))
        return _response(
            "POST",
            url,
            201,
            {"id": OLD_ID, "ip_address": IP, "timestamp": "2025-10-16T12:00:00Z"},
        )

    monkeypatch.setattr(httpx, "post", fake_post)

    result = _invoke(runner, "upload", str(scan_file))

    assert result.exit_code == 0, result.output
    assert calls == [(f"{API}/api/v1/snapshots", scan_file.name)]
    assert "stored" in result.output
    assert OLD_ID in result.output


def test_upload_duplicate_is_skipped_with_failure_exit(runner, scan_file, monkeypatch):
    monkeypatch.setattr(
        httpx,
        "post",
        lambda url, files, timeout: _response(
            "POST",
            url,
            409,
            {"detail": "already stored", "kind": "DuplicateSnapshot", "existing_id": OLD_ID},
        ),
    )

    result = _invoke(runner, "upload", str(scan_file))

    assert result.exit_code == 1
    assert "skipped" in result.output
    assert OLD_ID in result.output


def test_upload_invalid_reports_kind(runner, scan_file, monkeypatch):
    monkeypatch.setattr(
        httpx,
        "post",
        lambda url, files, timeout: _response(
            "POST", url, 422, {"detail": "Invalid JSON content", "kind": "InvalidFormat"}
        ),
    )

    result = _invoke(runner, "upload", str(scan_file))

    assert result.exit_code == 1
    assert "InvalidFormat" in result.output


def test_upload_connection_error(runner, scan_file, monkeypatch):
    def refuse(url, files, timeout):
        raise httpx.ConnectError("refused", request=httpx.Request("POST", url))

    monkeypatch.setattr(httpx, "post", refuse)

    result = _invoke(runner, "upload", str(scan_file))

    assert result.exit_code == 1
    assert "Cannot connect" in result.output


def test_history(runner, monkeypatch):
    items = [
        {"id": NEW_ID, "ip_address": IP, "timestamp": "2025-10-16T13:00:00Z"},
        {"id": OLD_ID, "ip_address": IP, "timestamp": "2025-10-16T12:00:00Z"},
    ]
    monkeypatch.setattr(
        httpx,
        "get",
        lambda url, timeout: _response(
            "GET", url, 200, {"ip_address": IP, "total": 2, "items": items}
        ),
    )

    result = _invoke(runner, "history", IP)

    assert result.exit_code == 0, result.output
    assert result.output.index("13:00:00") < result.output.index("12:00:00")


def test_history_empty(runner, monkeypatch):
    monkeypatch.setattr(
        httpx,
        "get",
        lambda url, timeout: _response("GET", url, 200, {"ip_address": IP, "total": 0, "items": []}),
    )

    result = _invoke(runner, "history", IP)

    assert result.exit_code == 0
    assert "No snapshots" in result.output


def test_hosts(runner, monkeypatch):
    items = [{"ip_address": IP, "snapshot_count": 3, "latest_timestamp": "2025-10-16T13:00:00Z"}]
    monkeypatch.setattr(
        httpx,
        "get",
        lambda url, timeout: _response("GET", url, 200, {"total": 1, "items": items}),
    )

    result = _invoke(runner, "hosts")

    assert result.exit_code == 0, result.output
    assert IP in result.output


def _diff_api(monkeypatch, compare_status=200, compare_body=REPORT):
    snapshots = {
        OLD_ID: _snapshot(OLD_ID, [{"port": 22, "protocol": "tcp"}], "Linux"),
        NEW_ID: _snapshot(
            NEW_ID,
            [
                {"port": 22, "protocol": "tcp"},
                {"port": 443, "protocol": "tcp", "vulnerabilities": ["CVE-2023-1234"]},
            ],
            "Windows",
        ),
    }

    def fake_get(url, timeout, params=None):
        if url.endswith("/compare"):
            return _response("GET", url, compare_status, compare_body)
        return _response("GET", url, 200, snapshots[url.rsplit("/", 1)[-1]])

    monkeypatch.setattr(httpx, "get", fake_get)


def test_diff_view(runner, monkeypatch):
    _diff_api(monkeypatch)

    result = _invoke(runner, "diff", OLD_ID, NEW_ID)

    assert result.exit_code == 0, result.output
    assert "443/tcp" in result.output
    assert "CVE-2023-1234" in result.output
    assert "Windows" in result.output


def test_diff_json(runner, monkeypatch):
    _diff_api(monkeypatch)

    result = _invoke(runner, "diff", "--json", OLD_ID, NEW_ID)

    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == REPORT


def test_diff_not_found(runner, monkeypatch):
    _diff_api(
        monkeypatch,
        compare_status=404,
        compare_body={"detail": f"Snapshot {NEW_ID} not found", "kind": "NotFound"},
    )

    result = _invoke(runner, "diff", OLD_ID, NEW_ID)

    assert result.exit_code == 1
    assert "NotFound" in result.output
