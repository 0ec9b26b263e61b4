"""Test fixtures for cert_preflight tests."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from cert_preflight.lib.models import CertificateMaterial

REFERENCE_TIME = datetime(2026, 3, 1, 12, 0, 0, tzinfo=UTC)

LEAF_KEY_USAGE = x509.KeyUsage(
    digital_signature=True,
    content_commitment=False,
    key_encipherment=True,
    data_encipherment=False,
    key_agreement=False,
    key_cert_sign=False,
    crl_sign=False,
    encipher_only=False,
    decipher_only=False,
)

CA_KEY_USAGE = x509.KeyUsage(
    digital_signature=False,
    content_commitment=False,
    key_encipherment=False,
    data_encipherment=False,
    key_agreement=False,
    key_cert_sign=True,
    crl_sign=True,
    encipher_only=False,
    decipher_only=False,
)

_UNSET = object()


def _generate_key() -> RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def now() -> datetime:
    """Return the fixed reference time checks are evaluated at."""
    return REFERENCE_TIME


@pytest.fixture(scope="session")
def root_key() -> RSAPrivateKey:
    """Generate RSA private key for the Root CA."""
    return _generate_key()


@pytest.fixture(scope="session")
def intermediate_key() -> RSAPrivateKey:
    """Generate RSA private key for the Intermediate CA."""
    return _generate_key()


@pytest.fixture(scope="session")
def leaf_key() -> RSAPrivateKey:
    """Generate RSA private key for the server certificate."""
    return _generate_key()


@pytest.fixture(scope="session")
def other_key() -> RSAPrivateKey:
    """Generate an unrelated RSA private key for mismatch tests."""
    return _generate_key()


@pytest.fixture
def make_certificate() -> Callable[..., x509.Certificate]:
    """Return a factory building certificates around REFERENCE_TIME.

    Without an issuer the certificate is self-signed by signing_key.
    """

    def _make(
        common_name: str,
        public_key,
        signing_key,
        issuer: x509.Certificate | None = None,
        not_before: datetime = REFERENCE_TIME - timedelta(days=30),
        not_after: datetime = REFERENCE_TIME + timedelta(days=365),
        ca: bool | None = False,
        path_length: int | None = None,
        extended_key_usage=_UNSET,
        key_usage=_UNSET,
    ) -> x509.Certificate:
        subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
        builder = (
            x509.CertificateBuilder()
            .subject_name(subject)
            .issuer_name(issuer.subject if issuer is not None else subject)
            .public_key(public_key)
            .serial_number(x509.random_serial_number())
            .not_valid_before(not_before)
            .not_valid_after(not_after)
        )
        if ca is not None:
            builder = builder.add_extension(
                x509.BasicConstraints(ca=ca, path_length=path_length if ca else None),
                critical=True,
            )
        if key_usage is _UNSET:
            key_usage = CA_KEY_USAGE if ca else LEAF_KEY_USAGE
        if key_usage is not None:
            builder = builder.add_extension(key_usage, critical=True)
        if extended_key_usage is _UNSET:
            extended_key_usage = None if ca else [ExtendedKeyUsageOID.SERVER_AUTH]
        if extended_key_usage is not None:
            builder = builder.add_extension(
                x509.ExtendedKeyUsage(extended_key_usage), critical=False
            )
        return builder.sign(signing_key, hashes.SHA256())

    return _make


@pytest.fixture
def root_cert(
    make_certificate: Callable[..., x509.Certificate], root_key: RSAPrivateKey
) -> x509.Certificate:
    """Generate self-signed Root CA certificate."""
    return make_certificate("Test Root CA", root_key.public_key(), root_key, ca=True)


@pytest.fixture
def leaf_cert(
    make_certificate: Callable[..., x509.Certificate],
    root_cert: x509.Certificate,
    root_key: RSAPrivateKey,
    leaf_key: RSAPrivateKey,
) -> x509.Certificate:
    """Generate server certificate signed directly by the Root CA."""
    return make_certificate(
        "server.example.test", leaf_key.public_key(), root_key, issuer=root_cert
    )


@pytest.fixture
def self_signed_leaf(
    make_certificate: Callable[..., x509.Certificate], leaf_key: RSAPrivateKey
) -> x509.Certificate:
    """Generate self-signed, non-CA server certificate."""
    return make_certificate("self-signed.example.test", leaf_key.public_key(), leaf_key)


def to_pem(obj) -> bytes:
    """Serialize a certificate, list of certificates, or private key to PEM."""
    if isinstance(obj, bytes):
        return obj
    if isinstance(obj, x509.Certificate):
        return obj.public_bytes(serialization.Encoding.PEM)
    if isinstance(obj, list):
        return b"".join(to_pem(item) for item in obj)
    return obj.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


@pytest.fixture
def write_material(tmp_path: Path) -> Callable[..., CertificateMaterial]:
    """Return a factory writing PEM artifacts to disk as CertificateMaterial.

    Each argument may be a cryptography object or raw bytes.
    """

    def _write(cert, key, bundle, req: bytes | None = None) -> CertificateMaterial:
        cert_path = tmp_path / "server.crt"
        key_path = tmp_path / "server.key"
        bundle_path = tmp_path / "ca-bundle.crt"
        cert_path.write_bytes(to_pem(cert))
        key_path.write_bytes(to_pem(key))
        bundle_path.write_bytes(to_pem(bundle))
        req_path = None
        if req is not None:
            req_path = tmp_path / "server.csr"
            req_path.write_bytes(req)
        return CertificateMaterial.from_paths(cert_path, key_path, bundle_path, req_path)

    return _write


@pytest.fixture
def valid_material(
    write_material: Callable[..., CertificateMaterial],
    leaf_cert: x509.Certificate,
    leaf_key: RSAPrivateKey,
    root_cert: x509.Certificate,
) -> CertificateMaterial:
    """Write a leaf, its key, and the Root CA bundle that verifies it."""
    return write_material(leaf_cert, leaf_key, [root_cert])
