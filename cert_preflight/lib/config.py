"""Validator configuration dataclasses."""

from dataclasses import dataclass


@dataclass
class ValidatorConfig:
    """Preflight validator configuration with no environment dependencies."""

    installer_command: str = "./install-server"
    max_reported_offences: int = 10
