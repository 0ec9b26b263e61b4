"""Ordered registry of certificate preflight checks.

Each check is a side-effect-free function of the material and the reference
time returning (passed, message). Checks never look at each other's results.
"""

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from datetime import datetime
from functools import partial
from pathlib import Path

from cryptography.exceptions import UnsupportedAlgorithm

from .cert_utils import (
    certificate_modulus,
    find_non_ascii_bytes,
    format_name,
    format_timestamp,
    is_ca_certificate,
    load_certificate,
    load_certificates,
    load_private_key,
    private_key_modulus,
)
from .chain_verifier import ChainVerificationError, verify_server_chain
from .config import ValidatorConfig
from .models import CertificateMaterial, CheckResult

CERT_EXPIRED = 6
CA_BUNDLE_EXPIRED = 7
CERT_IS_CA = 7
KEY_MISMATCH = 2
CHAIN_INVALID = 4
NON_ASCII_CONTENT = 4

# Errors the inspection layer raises for unreadable or malformed material
INSPECTION_ERRORS = (ValueError, TypeError, OSError, UnsupportedAlgorithm)

CheckFunc = Callable[[CertificateMaterial, datetime], tuple[bool, str]]


@dataclass(frozen=True)
class Check:
    """A registered check with its failure code."""

    name: str
    func: CheckFunc
    error_code: int = 0
    gating: bool = True


def check_certificate_expiration(material: CertificateMaterial, now: datetime) -> tuple[bool, str]:
    """Fail if the leaf certificate's notAfter is at or before now."""
    cert = load_certificate(material.cert_path)
    not_after = cert.not_valid_after_utc
    if not_after <= now:
        return False, (
            f"certificate expired on {format_timestamp(not_after)} "
            f"(checked at {format_timestamp(now)})"
        )
    return True, ""


def check_ca_bundle_expiration(material: CertificateMaterial, now: datetime) -> tuple[bool, str]:
    """Fail if the first certificate of the CA bundle has expired.

    Later certificates are only checked by chain verification.
    """
    cert = load_certificate(material.ca_bundle_path)
    not_after = cert.not_valid_after_utc
    if not_after <= now:
        return False, (
            f"CA bundle certificate {format_name(cert.subject)} expired on "
            f"{format_timestamp(not_after)} (checked at {format_timestamp(now)})"
        )
    return True, ""


def check_not_ca(material: CertificateMaterial, now: datetime) -> tuple[bool, str]:
    """Fail if the leaf certificate has basic constraints CA:TRUE."""
    cert = load_certificate(material.cert_path)
    if is_ca_certificate(cert):
        return False, "server certificate has CA:TRUE in basic constraints"
    return True, ""


def display_subject(material: CertificateMaterial, now: datetime) -> tuple[bool, str]:
    """Surface the leaf subject; never fails."""
    try:
        cert = load_certificate(material.cert_path)
    except INSPECTION_ERRORS as e:
        return True, f"unavailable ({e})"
    return True, format_name(cert.subject)


def check_key_matches_certificate(
    material: CertificateMaterial, now: datetime
) -> tuple[bool, str]:
    """Fail unless the private key's modulus equals the certificate's."""
    cert_modulus = certificate_modulus(load_certificate(material.cert_path))
    key_modulus = private_key_modulus(load_private_key(material.key_path))
    if cert_modulus != key_modulus:
        return False, (
            f"private key {material.key_path} does not match certificate {material.cert_path}"
        )
    return True, ""


def check_chain(material: CertificateMaterial, now: datetime) -> tuple[bool, str]:
    """Fail unless the leaf verifies against the bundle for TLS server use."""
    cert = load_certificate(material.cert_path)
    bundle = load_certificates(material.ca_bundle_path)
    try:
        verify_server_chain(cert, bundle, now)
    except ChainVerificationError as e:
        return False, str(e)
    return True, ""


def _describe_offences(path: Path, data: bytes, limit: int) -> list[str]:
    offences = find_non_ascii_bytes(data)
    lines = [f"{path}:{o.line}:{o.column}: byte 0x{o.value:02X}" for o in offences[:limit]]
    if len(offences) > limit:
        lines.append(f"{path}: {len(offences) - limit} more non-ASCII bytes")
    return lines


def check_ascii_only(
    material: CertificateMaterial,
    now: datetime,
    max_reported: int = ValidatorConfig.max_reported_offences,
) -> tuple[bool, str]:
    """Fail if the CA bundle or certificate file holds any byte above 0x7F."""
    lines: list[str] = []
    for path in (material.ca_bundle_path, material.cert_path):
        lines.extend(_describe_offences(path, path.read_bytes(), max_reported))
    if lines:
        return False, "\n".join(lines)
    return True, ""


def build_checks(config: ValidatorConfig) -> tuple[Check, ...]:
    """Return the ordered check registry for config."""
    return (
        Check("Certificate expiration", check_certificate_expiration, CERT_EXPIRED),
        Check("CA bundle expiration", check_ca_bundle_expiration, CA_BUNDLE_EXPIRED),
        Check("Certificate is not a CA", check_not_ca, CERT_IS_CA),
        Check("Certificate subject", display_subject, gating=False),
        Check("Private key matches certificate", check_key_matches_certificate, KEY_MISMATCH),
        Check("Certificate chain verification", check_chain, CHAIN_INVALID),
        Check(
            "ASCII-only encoding",
            partial(check_ascii_only, max_reported=config.max_reported_offences),
            NON_ASCII_CONTENT,
        ),
    )


CHECKS = build_checks(ValidatorConfig())


def run_check(check: Check, material: CertificateMaterial, now: datetime) -> CheckResult:
    """Run one check, turning inspection errors into a failure of that check."""
    try:
        passed, message = check.func(material, now)
    except INSPECTION_ERRORS as e:
        passed, message = False, f"{type(e).__name__}: {e}"

    if not check.gating:
        return CheckResult(name=check.name, passed=True, message=message, gating=False)
    return CheckResult(
        name=check.name,
        passed=passed,
        error_code=0 if passed else check.error_code,
        message=message,
    )


def run_checks(
    material: CertificateMaterial,
    now: datetime,
    checks: tuple[Check, ...] = CHECKS,
) -> Iterator[CheckResult]:
    """Yield one result per check, in registry order, without short-circuiting."""
    for check in checks:
        yield run_check(check, material, now)
