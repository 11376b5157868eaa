"""
Check that the configured wallet holds update authority for every manifest record.

Exit codes: 0 when every record is updatable by the wallet, 3 when some are
not, 1 when the ledger cannot be reached, 2 on configuration errors.
"""

from __future__ import annotations

import argparse
import logging
import os
from typing import Sequence

from ledger.signer import KeypairLoadError, load_keypair_signer
from updater.config import ConfigurationError, load_updater_settings, validate_settings, with_overrides
from updater.connectors.base import RpcRequestError
from updater.connectors.rpc_connector import LedgerRpcConnector
from updater.logging_utils import configure_logging
from updater.reporting import audit_lines, log_lines
from updater.services.authority_audit_service import AuthorityAuditService
from updater.services.manifest_loader import ManifestHeaderError, load_manifest

logger = logging.getLogger("scripts.check_authority")

EXIT_INCOMPLETE_AUTHORITY = 3


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Audit update authority over manifest records.")
    parser.add_argument("--rpc-url", dest="rpc_url", default=None)
    parser.add_argument("--manifest", dest="manifest_path", default=None)
    parser.add_argument("--keypair", dest="wallet_keypair_path", default=None)
    args = parser.parse_args(argv)
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))

    try:
        settings = with_overrides(load_updater_settings(), **vars(args))
        validate_settings(settings)
        signer = load_keypair_signer(settings.wallet_keypair_path)
        manifest = load_manifest(settings.manifest_path)
    except (ConfigurationError, KeypairLoadError, ManifestHeaderError) as exc:
        logger.error("%s", exc)
        return 2

    connector = LedgerRpcConnector.from_settings(settings)
    try:
        connector.get_latest_blockhash()
    except RpcRequestError as exc:
        logger.error("Cannot reach ledger rpc_url=%s error=%s", settings.rpc_url, exc)
        return 1

    logger.info("Checking authority wallet=%s records=%d", signer.public_key, len(manifest.records))
    report = AuthorityAuditService(client=connector).audit(manifest.records, signer.public_key)
    log_lines(logger, audit_lines(report, len(manifest.records)))
    return 0 if report.all_authorized else EXIT_INCOMPLETE_AUTHORITY


if __name__ == "__main__":
    raise SystemExit(main())
