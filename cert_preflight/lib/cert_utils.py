"""Certificate utility functions for loading, inspecting, and scanning PEM material."""

from datetime import datetime
from pathlib import Path
from typing import NamedTuple

from cryptography import x509
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.types import (
    CertificatePublicKeyTypes,
    PrivateKeyTypes,
)


class ByteOffence(NamedTuple):
    """A byte outside the 7-bit ASCII range, located by 1-based line and column."""

    line: int
    column: int
    value: int


def deserialize_certificate(pem_data: bytes) -> x509.Certificate:
    """Deserialize the first certificate from PEM bytes."""
    return x509.load_pem_x509_certificate(pem_data)


def deserialize_certificates(pem_data: bytes) -> list[x509.Certificate]:
    """Deserialize every certificate in a PEM bundle.

    Raises:
        ValueError: If the data holds no certificate or a block is malformed
    """
    return x509.load_pem_x509_certificates(pem_data)


def deserialize_private_key(pem_data: bytes) -> PrivateKeyTypes:
    """Deserialize an unencrypted private key from PEM bytes.

    Raises:
        ValueError: If the key is malformed or protected by a passphrase
    """
    try:
        return serialization.load_pem_private_key(pem_data, password=None)
    except TypeError as e:
        raise ValueError("private key is encrypted; supply an unencrypted key") from e


def load_certificate(path: Path) -> x509.Certificate:
    """Read and parse the leaf certificate at path."""
    return deserialize_certificate(path.read_bytes())


def load_certificates(path: Path) -> list[x509.Certificate]:
    """Read and parse every certificate in the bundle at path."""
    return deserialize_certificates(path.read_bytes())


def load_private_key(path: Path) -> PrivateKeyTypes:
    """Read and parse the private key at path."""
    return deserialize_private_key(path.read_bytes())


def public_key_modulus(public_key: CertificatePublicKeyTypes) -> bytes:
    """Return the comparable modulus of a public key.

    RSA keys yield the big-endian bytes of n. Other key types have no modulus,
    so their DER SubjectPublicKeyInfo is used instead.
    """
    if isinstance(public_key, rsa.RSAPublicKey):
        n = public_key.public_numbers().n
        return n.to_bytes((n.bit_length() + 7) // 8, "big")
    return public_key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def private_key_modulus(private_key: PrivateKeyTypes) -> bytes:
    """Return the modulus of the public half of a private key."""
    return public_key_modulus(private_key.public_key())  # type: ignore[arg-type]


def certificate_modulus(cert: x509.Certificate) -> bytes:
    """Return the modulus of the public key embedded in a certificate."""
    return public_key_modulus(cert.public_key())


def is_ca_certificate(cert: x509.Certificate) -> bool:
    """Return True if basic constraints mark the certificate as a CA."""
    try:
        bc = cert.extensions.get_extension_for_class(x509.BasicConstraints).value
    except x509.ExtensionNotFound:
        return False
    return bc.ca


def is_self_signed(cert: x509.Certificate) -> bool:
    """Return True if the certificate is self-issued and its signature verifies with its own key."""
    if cert.issuer != cert.subject:
        return False
    try:
        cert.verify_directly_issued_by(cert)
    except (ValueError, TypeError, InvalidSignature):
        return False
    return True


def format_name(name: x509.Name) -> str:
    """Render a distinguished name as an RFC 4514 string."""
    return name.rfc4514_string()


def format_timestamp(value: datetime) -> str:
    """Render a UTC datetime the way certificate tools print validity dates."""
    return value.strftime("%b %d %H:%M:%S %Y GMT")


def find_non_ascii_bytes(data: bytes) -> list[ByteOffence]:
    """Locate every byte above 0x7F in data.

    Lines are split on LF; a CR belongs to the line it ends.
    """
    offences: list[ByteOffence] = []
    for line_number, line in enumerate(data.split(b"\n"), start=1):
        for column, value in enumerate(line, start=1):
            if value > 0x7F:
                offences.append(ByteOffence(line_number, column, value))
    return offences
