#!/usr/bin/env python3
"""Validate a server certificate, key, and CA bundle before installation."""

import argparse
import sys
from typing import NoReturn

from cert_preflight.lib.config import ValidatorConfig
from cert_preflight.lib.logging_config import LOGGER
from cert_preflight.lib.models import EXIT_USAGE, CertificateMaterial, MissingMaterialError
from cert_preflight.lib.validator import CertificateValidator


class _ArgumentParser(argparse.ArgumentParser):
    """Argument parser that exits with status 1, keeping 2+ for check failures."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(EXIT_USAGE, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        description="Validate server certificate material before installation"
    )
    parser.add_argument("-c", dest="cert", metavar="CERT_FILE", help="Server certificate (PEM)")
    parser.add_argument("-k", dest="key", metavar="KEY_FILE", help="Private key (PEM)")
    parser.add_argument(
        "-r",
        dest="req",
        metavar="REQ_FILE",
        help="Certificate request (PEM), only used in the install instructions",
    )
    parser.add_argument("-b", dest="bundle", metavar="CA_BUNDLE_FILE", help="CA bundle (PEM)")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run every preflight check against the supplied files.

    Returns:
        Exit code (0 for success, 1 for argument errors, otherwise the
        bitwise OR of every failing check's code)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        material = CertificateMaterial.from_paths(
            cert_path=args.cert,
            key_path=args.key,
            ca_bundle_path=args.bundle,
            req_path=args.req,
        )
    except MissingMaterialError as e:
        parser.print_usage(sys.stderr)
        print(f"{parser.prog}: error: {e}", file=sys.stderr)
        return EXIT_USAGE

    LOGGER.info("Certificate: %s", material.cert_path)
    LOGGER.info("Private key: %s", material.key_path)
    LOGGER.info("CA bundle: %s", material.ca_bundle_path)

    validator = CertificateValidator(ValidatorConfig())
    status = validator.validate(material)
    return status.exit_code


if __name__ == "__main__":
    sys.exit(main())
