from .certificates import UNVERIFIED, CertificateInfo, certificate_from_headers
from .credentials import CredentialEntry, CredentialTable, CredentialTableError, FileCredentialTable
from .gate import Allowed, Denied, DenialReason, authorize

__all__ = [
    "Allowed",
    "CertificateInfo",
    "CredentialEntry",
    "CredentialTable",
    "CredentialTableError",
    "Denied",
    "DenialReason",
    "FileCredentialTable",
    "UNVERIFIED",
    "authorize",
    "certificate_from_headers",
]
