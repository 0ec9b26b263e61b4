"""Data models for certificate preflight validation."""

from dataclasses import dataclass
from pathlib import Path

EXIT_OK = 0
EXIT_USAGE = 1


class MissingMaterialError(ValueError):
    """Raised when a required input path was not supplied."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(f"missing required input: {', '.join(missing)}")


def _resolve(path: str | Path | None) -> Path | None:
    if path is None or str(path) == "":
        return None
    return Path(path).expanduser().resolve()


@dataclass(frozen=True)
class CertificateMaterial:
    """Resolved paths to the PEM artifacts being validated.

    Checks only read from this; it is never mutated after construction.
    """

    cert_path: Path
    key_path: Path
    ca_bundle_path: Path
    req_path: Path | None = None

    @classmethod
    def from_paths(
        cls,
        cert_path: str | Path | None,
        key_path: str | Path | None,
        ca_bundle_path: str | Path | None,
        req_path: str | Path | None = None,
    ) -> "CertificateMaterial":
        """Build material from user input, resolving symlinks to absolute paths.

        Args:
            cert_path: Server certificate (required)
            key_path: Private key matching the certificate (required)
            ca_bundle_path: CA bundle used as trust anchors (required)
            req_path: Certificate request, only used in the final report

        Returns:
            CertificateMaterial with canonical paths

        Raises:
            MissingMaterialError: If any required path is missing or empty
        """
        required = {
            "certificate": cert_path,
            "private key": key_path,
            "CA bundle": ca_bundle_path,
        }
        missing = [label for label, value in required.items() if _resolve(value) is None]
        if missing:
            raise MissingMaterialError(missing)

        return cls(
            cert_path=_resolve(cert_path),  # type: ignore[arg-type]
            key_path=_resolve(key_path),  # type: ignore[arg-type]
            ca_bundle_path=_resolve(ca_bundle_path),  # type: ignore[arg-type]
            req_path=_resolve(req_path),
        )


@dataclass(frozen=True)
class CheckResult:
    """Outcome of a single check invocation.

    error_code is only meaningful when passed is False. message holds the
    failure diagnostic, or the informational text of a non-gating check.
    """

    name: str
    passed: bool
    error_code: int = 0
    message: str = ""
    gating: bool = True


@dataclass(frozen=True)
class AggregateStatus:
    """Exit status folded from every check result.

    exit_code is the bitwise OR of failing codes and cannot be decoded back
    into individual checks; failures is the structured record.
    """

    exit_code: int
    failures: tuple[CheckResult, ...] = ()

    @property
    def succeeded(self) -> bool:
        return self.exit_code == EXIT_OK
