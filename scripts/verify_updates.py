"""
Verify on-chain metadata against the manifest after an update run.
"""

from __future__ import annotations

import argparse
import logging
import os
from typing import Sequence

from updater.config import ConfigurationError, load_updater_settings, validate_settings, with_overrides
from updater.connectors.rpc_connector import LedgerRpcConnector
from updater.logging_utils import configure_logging
from updater.reporting import log_lines, verification_lines
from updater.repositories.run_report_repository import RunReportWriter
from updater.services.manifest_loader import ManifestHeaderError, load_manifest
from updater.services.verification_service import VerificationService

logger = logging.getLogger("scripts.verify_updates")

EXIT_MISMATCH = 3


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Compare on-chain metadata with the manifest.")
    parser.add_argument("--rpc-url", dest="rpc_url", default=None)
    parser.add_argument("--manifest", dest="manifest_path", default=None)
    parser.add_argument("--log-dir", dest="log_dir", default=None)
    args = parser.parse_args(argv)
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))

    try:
        settings = with_overrides(load_updater_settings(), **vars(args))
        validate_settings(settings, require_files=False)
        manifest = load_manifest(settings.manifest_path)
    except (ConfigurationError, ManifestHeaderError) as exc:
        logger.error("%s", exc)
        return 2

    outcome_log = RunReportWriter(settings.log_dir).load_outcome_log()
    logger.info(
        "Verifying records=%d logged_outcomes=%d",
        len(manifest.records),
        len(outcome_log),
    )
    service = VerificationService(client=LedgerRpcConnector.from_settings(settings))
    report = service.verify(manifest.records, outcome_log)
    log_lines(logger, verification_lines(report, len(manifest.records)))
    return 0 if report.mismatched == 0 else EXIT_MISMATCH


if __name__ == "__main__":
    raise SystemExit(main())
