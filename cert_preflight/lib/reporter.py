"""Human-readable transcript of a preflight run."""

import sys
from typing import TextIO

from .config import ValidatorConfig
from .models import AggregateStatus, CertificateMaterial, CheckResult

OK = "[OK]"
FAIL = "[FAIL]"
INFO = "[INFO]"


class Reporter:
    """Writes one line per check as results arrive, then a closing block."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream if stream is not None else sys.stdout

    def _write(self, text: str) -> None:
        self.stream.write(text + "\n")
        self.stream.flush()

    def report_result(self, result: CheckResult) -> None:
        """Print the outcome of a single check; continuation lines are indented."""
        if not result.gating:
            head = f"{INFO} {result.name}"
        elif result.passed:
            head = f"{OK} {result.name}"
        else:
            head = f"{FAIL} {result.name}"

        if not result.message:
            self._write(head)
            return

        first, *rest = result.message.splitlines()
        self._write(f"{head}: {first}")
        for line in rest:
            self._write(f"    {line}")

    def report_success(self, material: CertificateMaterial, config: ValidatorConfig) -> None:
        """Print the success notice with ready-to-run installer commands."""
        command = config.installer_command
        self._write("")
        self._write("All checks passed. Install the validated files with:")
        self._write("")
        self._write(f"  {command} --cert {material.cert_path} \\")
        self._write(f"      --key {material.key_path} \\")
        if material.req_path is not None:
            self._write(f"      --csr {material.req_path} \\")
        self._write(f"      --ca-bundle {material.ca_bundle_path}")

    def report_failure(self, status: AggregateStatus) -> None:
        """Print a one-line summary of how many gating checks failed."""
        count = len(status.failures)
        noun = "check" if count == 1 else "checks"
        self._write("")
        self._write(f"{count} {noun} failed (exit status {status.exit_code}).")
