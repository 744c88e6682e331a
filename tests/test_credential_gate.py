from __future__ import annotations

import base64
from pathlib import Path

import orjson
import pytest

from iudx.catalogue.auth.certificates import (
    UNVERIFIED,
    CertificateInfo,
    certificate_from_headers,
    parse_distinguished_name,
    trust_class,
)
from iudx.catalogue.auth.credentials import (
    CredentialEntry,
    CredentialTableError,
    FileCredentialTable,
    StaticCredentialTable,
)
from iudx.catalogue.auth.gate import (
    Allowed,
    Denied,
    DenialReason,
    authorize,
    check_certificate,
    check_credentials,
)

from conftest import TRUSTED_SUBJECT


def basic(user: str, password: str | None = None) -> str:
    raw = user if password is None else f"{user}:{password}"
    return "Basic " + base64.b64encode(raw.encode("utf-8")).decode("ascii")


def subject_with_class(level: str) -> str:
    return TRUSTED_SUBJECT.replace("class:3", f"class:{level}")


TABLE = StaticCredentialTable(
    {
        "writer": CredentialEntry("writer", "s3cret", True),
        "reader": CredentialEntry("reader", "r3ad", False),
    }
)


@pytest.mark.parametrize("level", ["3", "4", "5"])
def test_trusted_classes_are_allowed(level: str) -> None:
    outcome = check_certificate(CertificateInfo(verified=True, subject=subject_with_class(level)))
    assert isinstance(outcome, Allowed)


@pytest.mark.parametrize("level", ["1", "2", "6"])
def test_other_classes_are_denied(level: str) -> None:
    outcome = check_certificate(CertificateInfo(verified=True, subject=subject_with_class(level)))
    assert isinstance(outcome, Denied)
    assert outcome.reason is DenialReason.UNTRUSTED_CERTIFICATE


def test_unverified_session_is_denied_without_error() -> None:
    outcome = check_certificate(UNVERIFIED)
    assert outcome == Denied(DenialReason.UNVERIFIED_CERTIFICATE, "Certificate 'authentication' error")


def test_subject_without_class_marker_is_denied() -> None:
    outcome = check_certificate(CertificateInfo(verified=True, subject="CN=someone,O=Example"))
    assert isinstance(outcome, Denied)


def test_trust_class_prefers_organization_identifier_attribute() -> None:
    subject = "CN=class:9 lookalike,organizationIdentifier=class:4,O=Example"
    assert trust_class(subject) == 4


def test_trust_class_ignores_marker_outside_organization_identifier() -> None:
    assert trust_class("class:5,CN=legacy") is None
    assert trust_class("CN=class:3 anyone,O=Example") is None

    outcome = check_certificate(CertificateInfo(verified=True, subject="CN=class:3 anyone,O=Example"))
    assert isinstance(outcome, Denied)
    assert outcome.reason is DenialReason.UNTRUSTED_CERTIFICATE


def test_parse_distinguished_name_keeps_escaped_commas() -> None:
    pairs = parse_distinguished_name(r"CN=Doe\, Jane,O=Example")
    assert pairs == [("CN", "Doe, Jane"), ("O", "Example")]


def test_certificate_from_headers_requires_success_marker() -> None:
    headers = {"X-SSL-Client-S-DN": TRUSTED_SUBJECT, "X-SSL-Client-Verify": "NONE"}
    assert certificate_from_headers(headers, "X-SSL-Client-S-DN", "X-SSL-Client-Verify") is UNVERIFIED

    headers["X-SSL-Client-Verify"] = "SUCCESS"
    info = certificate_from_headers(headers, "X-SSL-Client-S-DN", "X-SSL-Client-Verify")
    assert info == CertificateInfo(verified=True, subject=TRUSTED_SUBJECT)


def test_certificate_headers_count_only_from_trusted_peers() -> None:
    headers = {"X-SSL-Client-S-DN": TRUSTED_SUBJECT, "X-SSL-Client-Verify": "SUCCESS"}
    proxies = ("10.0.0.5",)

    forged = certificate_from_headers(
        headers, "X-SSL-Client-S-DN", "X-SSL-Client-Verify", peer="203.0.113.9", trusted_proxies=proxies
    )
    assert forged is UNVERIFIED
    assert certificate_from_headers(
        headers, "X-SSL-Client-S-DN", "X-SSL-Client-Verify", peer=None, trusted_proxies=proxies
    ) is UNVERIFIED

    forwarded = certificate_from_headers(
        headers, "X-SSL-Client-S-DN", "X-SSL-Client-Verify", peer="10.0.0.5", trusted_proxies=proxies
    )
    assert forwarded.verified


def test_registered_writer_is_allowed() -> None:
    assert check_credentials(basic("writer", "s3cret"), TABLE) == Allowed(user_id="writer")


def test_unknown_user_is_denied() -> None:
    outcome = check_credentials(basic("ghost", "boo"), TABLE)
    assert isinstance(outcome, Denied)
    assert outcome.reason.value == "unknown user"


def test_wrong_password_is_denied() -> None:
    outcome = check_credentials(basic("writer", "nope"), TABLE)
    assert isinstance(outcome, Denied)
    assert outcome.reason.value == "bad password"


def test_user_without_write_permission_is_denied() -> None:
    outcome = check_credentials(basic("reader", "r3ad"), TABLE)
    assert isinstance(outcome, Denied)
    assert outcome.reason.value == "no write access"


def test_non_basic_scheme_is_denied() -> None:
    outcome = check_credentials("Bearer dG9rZW4=", TABLE)
    assert isinstance(outcome, Denied)
    assert outcome.reason.value == "scheme"


@pytest.mark.parametrize("header", ["Basic", "Basic !!!not-base64!!!", "Basic//", "Basic a b"])
def test_malformed_headers_are_denied_not_raised(header: str) -> None:
    outcome = check_credentials(header, TABLE)
    assert isinstance(outcome, Denied)
    assert outcome.reason in (DenialReason.MALFORMED_HEADER, DenialReason.SCHEME)


def test_missing_password_segment_is_denied() -> None:
    assert check_credentials(basic("writer", ""), TABLE).reason is DenialReason.MISSING_PASSWORD
    assert check_credentials(basic("writer"), TABLE).reason is DenialReason.MISSING_PASSWORD


def test_missing_header_is_denied() -> None:
    assert check_credentials(None, TABLE).reason is DenialReason.MISSING_HEADER


def test_password_may_contain_colons() -> None:
    table = StaticCredentialTable({"svc": CredentialEntry("svc", "a:b:c", True)})
    assert isinstance(check_credentials(basic("svc", "a:b:c"), table), Allowed)


def test_authorize_checks_certificate_before_credentials() -> None:
    outcome = authorize(UNVERIFIED, basic("writer", "s3cret"), TABLE)
    assert isinstance(outcome, Denied)
    assert outcome.reason.is_certificate_failure

    trusted = CertificateInfo(verified=True, subject=TRUSTED_SUBJECT)
    assert isinstance(authorize(trusted, basic("writer", "s3cret"), TABLE), Allowed)


def test_file_table_is_reread_on_every_lookup(credentials_file: Path) -> None:
    table = FileCredentialTable(credentials_file)
    assert isinstance(check_credentials(basic("reader", "r3ad"), table), Denied)

    users = orjson.loads(credentials_file.read_bytes())
    users["reader"]["write_permission"] = True
    credentials_file.write_bytes(orjson.dumps(users))

    assert isinstance(check_credentials(basic("reader", "r3ad"), table), Allowed)


def test_unreadable_table_is_reported(tmp_path: Path) -> None:
    table = FileCredentialTable(tmp_path / "missing.list")
    with pytest.raises(CredentialTableError):
        table.lookup("writer")
    outcome = check_credentials(basic("writer", "s3cret"), table)
    assert outcome.reason is DenialReason.TABLE_UNAVAILABLE
