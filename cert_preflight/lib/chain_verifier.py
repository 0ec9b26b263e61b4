"""Certificate chain verification against a CA bundle for TLS server use."""

from datetime import datetime

from cryptography import x509
from cryptography.exceptions import InvalidSignature
from cryptography.x509.oid import ExtendedKeyUsageOID

from .cert_utils import format_name, format_timestamp, is_self_signed

MAX_CHAIN_DEPTH = 10

SERVER_AUTH_USAGES = {
    ExtendedKeyUsageOID.SERVER_AUTH,
    ExtendedKeyUsageOID.ANY_EXTENDED_KEY_USAGE,
}


class ChainVerificationError(Exception):
    """Raised when a leaf certificate cannot be verified against the bundle.

    The message is operator-facing and is shown verbatim.
    """

    def __init__(self, depth: int, cert: x509.Certificate, reason: str) -> None:
        self.depth = depth
        self.reason = reason
        super().__init__(f"{format_name(cert.subject)}\nerror at depth {depth}: {reason}")


def _check_validity(cert: x509.Certificate, depth: int, now: datetime) -> None:
    if now < cert.not_valid_before_utc:
        raise ChainVerificationError(
            depth,
            cert,
            f"certificate is not yet valid (notBefore={format_timestamp(cert.not_valid_before_utc)})",
        )
    if cert.not_valid_after_utc <= now:
        raise ChainVerificationError(
            depth,
            cert,
            f"certificate has expired (notAfter={format_timestamp(cert.not_valid_after_utc)})",
        )


def _check_server_purpose(leaf: x509.Certificate) -> None:
    """Reject a leaf whose extensions forbid TLS server authentication."""
    try:
        eku = leaf.extensions.get_extension_for_class(x509.ExtendedKeyUsage).value
    except x509.ExtensionNotFound:
        eku = None
    if eku is not None and not SERVER_AUTH_USAGES.intersection(eku):
        raise ChainVerificationError(0, leaf, "unsupported certificate purpose (no serverAuth)")

    try:
        ku = leaf.extensions.get_extension_for_class(x509.KeyUsage).value
    except x509.ExtensionNotFound:
        return
    if not (ku.digital_signature or ku.key_encipherment or ku.key_agreement):
        raise ChainVerificationError(
            0, leaf, "unsupported certificate purpose (key usage forbids TLS server)"
        )


def _check_issuer_is_ca(issuer: x509.Certificate, depth: int, below: int) -> None:
    """Ensure issuer may sign certificates, with below intermediates beneath it."""
    try:
        bc = issuer.extensions.get_extension_for_class(x509.BasicConstraints).value
    except x509.ExtensionNotFound:
        # Version 1 roots carry no extensions and are trusted as CAs
        if issuer.version == x509.Version.v1 and is_self_signed(issuer):
            return
        raise ChainVerificationError(depth, issuer, "invalid CA certificate (no basicConstraints)")

    if not bc.ca:
        raise ChainVerificationError(depth, issuer, "invalid CA certificate (CA:FALSE)")
    if bc.path_length is not None and below > bc.path_length:
        raise ChainVerificationError(depth, issuer, "path length constraint exceeded")

    try:
        ku = issuer.extensions.get_extension_for_class(x509.KeyUsage).value
    except x509.ExtensionNotFound:
        return
    if not ku.key_cert_sign:
        raise ChainVerificationError(
            depth, issuer, "key usage does not include certificate signing"
        )


def _find_issuer(
    cert: x509.Certificate, candidates: list[x509.Certificate]
) -> x509.Certificate | None:
    for candidate in candidates:
        if candidate.subject != cert.issuer or candidate == cert:
            continue
        try:
            cert.verify_directly_issued_by(candidate)
        except (ValueError, TypeError, InvalidSignature):
            continue
        return candidate
    return None


def verify_server_chain(
    leaf: x509.Certificate,
    bundle: list[x509.Certificate],
    now: datetime,
) -> list[x509.Certificate]:
    """Verify leaf up to a self-signed anchor in bundle for TLS server authentication.

    Every certificate of the bundle is trusted. The path is built by issuer
    name and signature, must end at a self-signed certificate found in the
    bundle, and every certificate on it must be valid at now. A self-signed
    leaf that is itself in the bundle is its own anchor.

    Args:
        leaf: End-entity server certificate
        bundle: CA certificates acting as trust anchors
        now: Reference time (timezone-aware UTC)

    Returns:
        Verified chain, leaf first

    Raises:
        ChainVerificationError: With the reason and depth of the first problem
    """
    _check_server_purpose(leaf)

    chain = [leaf]
    current = leaf
    while True:
        depth = len(chain) - 1
        _check_validity(current, depth, now)

        if is_self_signed(current):
            if current in bundle:
                return chain
            raise ChainVerificationError(depth, current, "self-signed certificate not in CA bundle")

        if depth >= MAX_CHAIN_DEPTH:
            raise ChainVerificationError(depth, current, "certificate chain too long")

        issuer = _find_issuer(current, bundle)
        if issuer is None:
            raise ChainVerificationError(
                depth,
                current,
                f"unable to get issuer certificate ({format_name(current.issuer)})",
            )
        if issuer in chain:
            raise ChainVerificationError(depth, current, "certificate chain contains a loop")

        # Intermediates between this issuer and the leaf, leaf excluded
        _check_issuer_is_ca(issuer, depth + 1, depth)
        chain.append(issuer)
        current = issuer
