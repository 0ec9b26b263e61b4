"""Fold check results into a single exit status."""

from .models import EXIT_OK, AggregateStatus, CheckResult


class ResultAggregator:
    """Accumulates check results without ever stopping early.

    The exit code is the bitwise OR of every failing gating check's code,
    so overlapping codes collapse (6 | 2 == 6).
    """

    def __init__(self) -> None:
        self.exit_code = EXIT_OK
        self.results: list[CheckResult] = []
        self.failures: list[CheckResult] = []

    def add(self, result: CheckResult) -> None:
        """Record one result, OR-ing its code into the exit status on failure."""
        self.results.append(result)
        if result.gating and not result.passed:
            self.exit_code |= result.error_code
            self.failures.append(result)

    @property
    def status(self) -> AggregateStatus:
        return AggregateStatus(exit_code=self.exit_code, failures=tuple(self.failures))
