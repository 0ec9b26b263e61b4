"""Certificate preflight validator wiring checks, aggregation, and reporting."""

from datetime import UTC, datetime

from .aggregator import ResultAggregator
from .checks import build_checks, run_checks
from .config import ValidatorConfig
from .logging_config import LOGGER
from .models import AggregateStatus, CertificateMaterial
from .reporter import Reporter


def utc_now() -> datetime:
    """Current UTC time truncated to whole seconds, matching certificate date resolution."""
    return datetime.now(UTC).replace(microsecond=0)


class CertificateValidator:
    """Runs every preflight check once against a set of certificate material."""

    def __init__(self, config: ValidatorConfig, reporter: Reporter | None = None) -> None:
        """Initialize validator with configuration.

        Args:
            config: Validator configuration (installer command, report limits)
            reporter: Transcript writer; defaults to stdout
        """
        self.config = config
        self.reporter = reporter if reporter is not None else Reporter()
        self.checks = build_checks(config)

    def validate(
        self, material: CertificateMaterial, now: datetime | None = None
    ) -> AggregateStatus:
        """Run all checks, stream each outcome, and return the aggregate status.

        Args:
            material: Resolved certificate, key, request, and bundle paths
            now: Reference time for expiry checks; defaults to utc_now()

        Returns:
            AggregateStatus whose exit_code is the OR of every failing code
        """
        now = utc_now() if now is None else now.astimezone(UTC).replace(microsecond=0)
        LOGGER.info("Validating %s against %s", material.cert_path, material.ca_bundle_path)

        aggregator = ResultAggregator()
        for result in run_checks(material, now, self.checks):
            self.reporter.report_result(result)
            aggregator.add(result)
            if result.gating and not result.passed:
                LOGGER.warning(
                    "Check failed: %s (code %d): %s", result.name, result.error_code, result.message
                )
            else:
                LOGGER.info("Check passed: %s", result.name)

        status = aggregator.status
        if status.succeeded:
            self.reporter.report_success(material, self.config)
        else:
            self.reporter.report_failure(status)
            LOGGER.error(
                "%d checks failed, exit status %d", len(status.failures), status.exit_code
            )
        return status
