from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Collection, Dict, List, Mapping, Tuple

# organizationIdentifier carries the issuing authority's assurance level ("class:3")
TRUST_CLASS_ATTRIBUTES: Tuple[str, ...] = ("OID.2.5.4.97", "2.5.4.97", "ORGANIZATIONIDENTIFIER", "OID")
_TRUST_CLASS_RE = re.compile(r"class\s*:\s*(\d+)", re.IGNORECASE)
_RDN_SPLIT_RE = re.compile(r"(?<!\\),")


@dataclass(frozen=True, slots=True)
class CertificateInfo:
    """Peer certificate details forwarded by the TLS terminator."""

    verified: bool
    subject: str | None = None


UNVERIFIED = CertificateInfo(verified=False)


def certificate_from_headers(
    headers: Mapping[str, str],
    subject_header: str,
    verify_header: str,
    peer: str | None = None,
    trusted_proxies: Collection[str] | None = None,
) -> CertificateInfo:
    """Read the certificate verdict a TLS terminator forwarded in ``headers``.

    With ``trusted_proxies`` given, the headers only count when ``peer`` is one
    of them and the session is otherwise unverified.
    """

    if trusted_proxies is not None and peer not in trusted_proxies:
        return UNVERIFIED
    verify = (headers.get(verify_header) or "").strip().upper()
    subject = (headers.get(subject_header) or "").strip()
    if verify != "SUCCESS" or not subject:
        return UNVERIFIED
    return CertificateInfo(verified=True, subject=subject)


def parse_distinguished_name(subject: str) -> List[Tuple[str, str]]:
    """Split a subject DN into ordered (attribute, value) pairs.

    Components without ``=`` are kept with an empty attribute name.
    """

    pairs: List[Tuple[str, str]] = []
    for component in _RDN_SPLIT_RE.split(subject):
        component = component.strip()
        if not component:
            continue
        key, sep, value = component.partition("=")
        if not sep:
            pairs.append(("", component.replace("\\,", ",")))
            continue
        pairs.append((key.strip(), value.strip().replace("\\,", ",")))
    return pairs


def trust_class(subject: str) -> int | None:
    """Return the trust class carried by the subject's organizational identifier."""

    attributes: Dict[str, str] = {}
    for key, value in parse_distinguished_name(subject):
        attributes.setdefault(key.upper(), value)
    candidate = next((attributes[name] for name in TRUST_CLASS_ATTRIBUTES if name in attributes), None)
    if candidate is None:
        return None
    match = _TRUST_CLASS_RE.search(candidate)
    if not match:
        return None
    return int(match.group(1))


__all__ = [
    "CertificateInfo",
    "UNVERIFIED",
    "certificate_from_headers",
    "parse_distinguished_name",
    "trust_class",
]
