"""Certificate and HTTP Basic authorization for state-changing catalogue requests."""

from __future__ import annotations

import base64
import binascii
import hmac
from dataclasses import dataclass
from enum import Enum
from typing import Collection, Union

from shared.logging import get_logger

from .certificates import CertificateInfo, trust_class
from .credentials import CredentialTable, CredentialTableError

logger = get_logger("catalogue.auth")

DEFAULT_TRUST_CLASSES = frozenset({3, 4, 5})


class DenialReason(str, Enum):
    UNVERIFIED_CERTIFICATE = "unverified certificate"
    UNTRUSTED_CERTIFICATE = "untrusted certificate"
    MISSING_HEADER = "missing header"
    SCHEME = "scheme"
    MALFORMED_HEADER = "malformed header"
    MISSING_PASSWORD = "missing password"
    UNKNOWN_USER = "unknown user"
    BAD_PASSWORD = "bad password"
    NO_WRITE_ACCESS = "no write access"
    TABLE_UNAVAILABLE = "credential table unavailable"

    @property
    def is_certificate_failure(self) -> bool:
        return self in (DenialReason.UNVERIFIED_CERTIFICATE, DenialReason.UNTRUSTED_CERTIFICATE)


@dataclass(frozen=True, slots=True)
class Allowed:
    user_id: str | None = None


@dataclass(frozen=True, slots=True)
class Denied:
    reason: DenialReason
    detail: str = ""

    @property
    def message(self) -> str:
        return self.detail or self.reason.value


AuthOutcome = Union[Allowed, Denied]


def check_certificate(
    certificate: CertificateInfo, allowed_classes: Collection[int] = DEFAULT_TRUST_CLASSES
) -> AuthOutcome:
    if not certificate.verified or not certificate.subject:
        return Denied(DenialReason.UNVERIFIED_CERTIFICATE, "Certificate 'authentication' error")
    level = trust_class(certificate.subject)
    logger.debug("certificate_inspected", subject=certificate.subject, trust_class=level)
    if level is None or level not in allowed_classes:
        return Denied(DenialReason.UNTRUSTED_CERTIFICATE, "Certificate 'authentication' error")
    return Allowed()


def check_credentials(authorization: str | None, table: CredentialTable) -> AuthOutcome:
    if not authorization:
        return Denied(DenialReason.MISSING_HEADER, "Use Basic HTTP authorization")

    parts = authorization.split(" ")
    if len(parts) != 2 or not parts[1]:
        return Denied(DenialReason.MALFORMED_HEADER, "Use Basic HTTP authentication")
    scheme, token = parts
    if scheme != "Basic":
        return Denied(DenialReason.SCHEME, "Use Basic HTTP authorization")

    try:
        decoded = base64.b64decode(token, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return Denied(DenialReason.MALFORMED_HEADER, "Use Basic HTTP authentication")

    user_id, _, password = decoded.partition(":")
    if not user_id:
        return Denied(DenialReason.MALFORMED_HEADER, "Use Basic HTTP authentication")
    if not password:
        return Denied(DenialReason.MISSING_PASSWORD, "Add 'authentication' in the header of your request")

    try:
        entry = table.lookup(user_id)
    except CredentialTableError as exc:
        logger.error("credential_table_unavailable", error=str(exc))
        return Denied(DenialReason.TABLE_UNAVAILABLE)

    if entry is None:
        return Denied(DenialReason.UNKNOWN_USER, f"User {user_id} is not registered")
    if not hmac.compare_digest(password.encode("utf-8"), entry.password.encode("utf-8")):
        return Denied(DenialReason.BAD_PASSWORD, "Your password is invalid")
    if not entry.write_permission:
        return Denied(DenialReason.NO_WRITE_ACCESS, "You do not have write access to the server")
    return Allowed(user_id=user_id)


def authorize(
    certificate: CertificateInfo,
    authorization: str | None,
    table: CredentialTable,
    allowed_classes: Collection[int] = DEFAULT_TRUST_CLASSES,
) -> AuthOutcome:
    """Run the certificate check, then the Basic credential check."""

    outcome = check_certificate(certificate, allowed_classes)
    if isinstance(outcome, Denied):
        logger.info("authorization_denied", reason=outcome.reason.value)
        return outcome
    outcome = check_credentials(authorization, table)
    logger.info(
        "authorization_checked",
        allowed=isinstance(outcome, Allowed),
        reason=outcome.reason.value if isinstance(outcome, Denied) else None,
    )
    return outcome


__all__ = [
    "Allowed",
    "AuthOutcome",
    "DEFAULT_TRUST_CLASSES",
    "Denied",
    "DenialReason",
    "authorize",
    "check_certificate",
    "check_credentials",
]
