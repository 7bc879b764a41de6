"""Tests for filename parsing and snapshot document parsing."""

import json
from datetime import datetime, timezone

import pytest

from hostdiff.core.errors import InvalidFormat
from hostdiff.ingest.filename import parse_filename
from hostdiff.ingest.parser import parse_snapshot

FILENAME = "host_125.199.235.74_2025-10-16T12-00-00Z.json"
WHEN = datetime(2025, 10, 16, 12, 0, 0, tzinfo=timezone.utc)


def _doc(**fields) -> bytes:
    body = {"os": {"name": "Linux"}, "services": [{"port": 22, "protocol": "tcp"}]}
    body.update(fields)
    return json.dumps(body).encode()


# ── filenames ─────────────────────────────────────────────────────────────────


def test_parse_valid_filename():
    parsed = parse_filename(FILENAME)
    assert parsed.ip_address == "125.199.235.74"
    assert parsed.timestamp == WHEN


@pytest.mark.parametrize(
    "path",
    [
        "scans/" + FILENAME,
        "/var/tmp/uploads/" + FILENAME,
        "C:\\scans\\" + FILENAME,
    ],
)
def test_parse_filename_uses_basename(path):
    assert parse_filename(path).ip_address == "125.199.235.74"


def test_parse_filename_strips_leading_zeros():
    assert parse_filename("host_010.000.000.001_2025-10-16T12-00-00Z.json").ip_address == "10.0.0.1"


@pytest.mark.parametrize(
    "name",
    [
        "scan.json",
        "host_125.199.235.74.json",
        "host_125.199.235.74_2025-10-16T12:00:00Z.json",
        "host_125.199.235.74_2025-10-16T12-00-00Z.txt",
        "host_256.1.1.1_2025-10-16T12-00-00Z.json",
        "host_1.2.3_2025-10-16T12-00-00Z.json",
        "host_1.2.3.4_2025-13-01T12-00-00Z.json",
        "host_1.2.3.4_2025-10-00T12-00-00Z.json",
        "host_1.2.3.4_2025-10-16T24-00-00Z.json",
        "host_1.2.3.4_2025-10-16T12-60-00Z.json",
        "host_1.2.3.4_2025-02-30T12-00-00Z.json",
        "prefix_host_1.2.3.4_2025-10-16T12-00-00Z.json",
    ],
)
def test_parse_filename_rejects(name):
    with pytest.raises(InvalidFormat):
        parse_filename(name)


def test_octet_error_names_the_octet():
    with pytest.raises(InvalidFormat, match="octet"):
        parse_filename("host_1.2.300.4_2025-10-16T12-00-00Z.json")


# ── documents ─────────────────────────────────────────────────────────────────


def test_identity_falls_back_to_filename():
    snapshot = parse_snapshot(_doc(), filename=FILENAME)

    assert snapshot.ip_address == "125.199.235.74"
    assert snapshot.timestamp == WHEN
    assert snapshot.os_info.name == "Linux"
    assert [s.key for s in snapshot.services] == [(22, "tcp")]
    assert snapshot.services[0].state == "open"


def test_self_describing_document_needs_no_conventional_filename():
    snapshot = parse_snapshot(
        _doc(ip="10.1.2.3", timestamp="2025-10-16T08:30:00+02:00"),
        filename="upload.json",
    )
    assert snapshot.ip_address == "10.1.2.3"
    assert snapshot.timestamp == datetime(2025, 10, 16, 6, 30, tzinfo=timezone.utc)


def test_content_timestamp_wins_over_filename():
    snapshot = parse_snapshot(_doc(timestamp="2025-10-16T12:00:05Z"), filename=FILENAME)
    assert snapshot.timestamp == datetime(2025, 10, 16, 12, 0, 5, tzinfo=timezone.utc)


def test_ip_mismatch_is_rejected():
    with pytest.raises(InvalidFormat, match="does not match"):
        parse_snapshot(_doc(ip="10.0.0.1"), filename=FILENAME)


def test_missing_identity_without_filename_is_rejected():
    with pytest.raises(InvalidFormat):
        parse_snapshot(_doc())


def test_unconventional_filename_without_identity_is_rejected():
    with pytest.raises(InvalidFormat):
        parse_snapshot(_doc(), filename="upload.json")


@pytest.mark.parametrize(
    "content",
    [
        b"{not json",
        b"\xff\xfe\x00",
        b"[1, 2, 3]",
        b'"just a string"',
    ],
)
def test_malformed_content_is_rejected(content):
    with pytest.raises(InvalidFormat):
        parse_snapshot(content, filename=FILENAME)


@pytest.mark.parametrize(
    "fields",
    [
        {"services": {"port": 22}},
        {"services": [{"port": 70000, "protocol": "tcp"}]},
        {"services": [{"port": 22}]},
        {"services": [{"port": 22, "protocol": "tcp", "vulnerabilities": [42]}]},
        {"os": "Linux"},
        {"ip": "999.1.1.1", "timestamp": "2025-10-16T12:00:00Z"},
    ],
)
def test_invalid_documents_are_rejected(fields):
    with pytest.raises(InvalidFormat):
        parse_snapshot(_doc(**fields), filename=FILENAME)


def test_duplicate_service_keys_are_rejected():
    services = [{"port": 22, "protocol": "tcp"}, {"port": 22, "protocol": "tcp", "state": "closed"}]
    with pytest.raises(InvalidFormat, match="Duplicate service 22/tcp"):
        parse_snapshot(_doc(services=services), filename=FILENAME)


def test_same_port_on_two_protocols_is_allowed():
    services = [{"port": 53, "protocol": "udp"}, {"port": 53, "protocol": "tcp"}]
    snapshot = parse_snapshot(_doc(services=services), filename=FILENAME)
    assert [s.key for s in snapshot.services] == [(53, "tcp"), (53, "udp")]


def test_size_limit():
    content = _doc()
    with pytest.raises(InvalidFormat, match="limit"):
        parse_snapshot(content, filename=FILENAME, max_bytes=len(content) - 1)
    assert parse_snapshot(content, filename=FILENAME, max_bytes=len(content))


def test_camel_case_fingerprint_is_accepted():
    services = [
        {
            "port": 443,
            "protocol": "tcp",
            "tls": {"version": "TLSv1.3", "certFingerprintSha256": "ab:cd"},
        }
    ]
    snapshot = parse_snapshot(_doc(services=services), filename=FILENAME)
    assert snapshot.services[0].tls.cert_fingerprint_sha256 == "ab:cd"


def test_vulnerabilities_are_deduplicated_and_sorted():
    services = [
        {
            "port": 443,
            "protocol": "tcp",
            "vulnerabilities": ["CVE-2023-5678", "CVE-2023-1234", "CVE-2023-5678", " "],
        }
    ]
    snapshot = parse_snapshot(_doc(services=services), filename=FILENAME)
    assert snapshot.services[0].vulnerabilities == ("CVE-2023-1234", "CVE-2023-5678")


def test_missing_os_and_services_are_tolerated():
    snapshot = parse_snapshot(b"{}", filename=FILENAME)
    assert snapshot.os_info.name is None
    assert snapshot.services == ()


def test_content_hash_ignores_service_order():
    services = [{"port": 443, "protocol": "tcp"}, {"port": 22, "protocol": "tcp"}]
    a = parse_snapshot(_doc(services=services), filename=FILENAME)
    b = parse_snapshot(_doc(services=list(reversed(services))), filename=FILENAME)
    assert a.content_hash() == b.content_hash()


@pytest.mark.parametrize(
    "service",
    [
        {"port": 80, "protocol": "tcp", "software": {"version": "x" * 300}},
        {"port": 80, "protocol": "tcp", "software": {"vendor": "v" * 256}},
        {"port": 443, "protocol": "tcp", "tls": {"version": "TLSv" + "1" * 60}},
        {"port": 443, "protocol": "tcp", "tls": {"cipher": "c" * 256}},
        {"port": 443, "protocol": "tcp", "tls": {"certFingerprintSha256": "ab" * 65}},
        {"port": 443, "protocol": "tcp", "vulnerabilities": ["CVE-" + "9" * 70]},
    ],
)
def test_over_long_fields_are_rejected(service):
    with pytest.raises(InvalidFormat):
        parse_snapshot(_doc(services=[service]), filename=FILENAME)


def test_over_long_os_name_is_rejected():
    with pytest.raises(InvalidFormat, match="os_info"):
        parse_snapshot(_doc(os={"name": "L" * 256}), filename=FILENAME)


def test_fields_at_column_limits_are_accepted():
    services = [
        {
            "port": 443,
            "protocol": "tcp",
            "software": {"version": "x" * 255},
            "tls": {"version": "v" * 50, "cert_fingerprint_sha256": "f" * 128},
            "vulnerabilities": ["C" * 64],
        }
    ]
    snapshot = parse_snapshot(_doc(os={"name": "L" * 255}, services=services), filename=FILENAME)
    assert snapshot.services[0].software.version == "x" * 255
