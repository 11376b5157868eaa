"""
Run a batch metadata update from CLI.

Exit codes: 0 on completion (including per-record failures and a declined
prompt), 1 when the ledger cannot be reached, 2 on configuration errors.
"""

from __future__ import annotations

import argparse
import logging
import os
import signal
import threading
from typing import Callable, Sequence

from ledger.signer import KeypairLoadError, load_keypair_signer
from updater.config import (
    ConfigurationError,
    UpdaterSettings,
    load_updater_settings,
    parse_index_range,
    validate_settings,
    with_overrides,
)
from updater.connectors.base import RpcRequestError
from updater.connectors.rpc_connector import LedgerRpcConnector
from updater.logging_utils import configure_logging
from updater.reporting import log_lines, summary_lines
from updater.repositories.checkpoint_repository import CheckpointCorruptError
from updater.services.batch_orchestrator import build_batch_orchestrator
from updater.services.cost_estimator import (
    estimate_cost,
    is_balance_sufficient,
    lamports_to_sol,
    recommended_balance,
)
from updater.services.manifest_loader import ManifestHeaderError, filter_by_range, load_manifest

logger = logging.getLogger("scripts.run_metadata_update")

EXIT_OK = 0
EXIT_CONNECTION_ERROR = 1
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Batch-update on-chain NFT metadata from a manifest CSV.")
    parser.add_argument("--rpc-url", dest="rpc_url", default=None, help="JSON-RPC endpoint.")
    parser.add_argument("--network", dest="network", default=None, help="mainnet-beta or devnet.")
    parser.add_argument("--manifest", dest="manifest_path", default=None, help="Manifest CSV path.")
    parser.add_argument("--keypair", dest="wallet_keypair_path", default=None, help="Wallet keypair JSON path.")
    parser.add_argument("--batch-size", dest="batch_size", type=int, default=None, help="Records per chunk.")
    parser.add_argument(
        "--batch-delay",
        dest="batch_delay_seconds",
        type=float,
        default=None,
        help="Seconds to wait between chunks.",
    )
    parser.add_argument(
        "--record-delay",
        dest="record_delay_seconds",
        type=float,
        default=None,
        help="Seconds to wait between records.",
    )
    parser.add_argument(
        "--dry-run",
        dest="dry_run",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Diff only, never submit (use --no-dry-run to send transactions).",
    )
    parser.add_argument(
        "--yes",
        dest="skip_confirm",
        action="store_const",
        const=True,
        default=None,
        help="Skip the confirmation prompt.",
    )
    parser.add_argument("--range", dest="record_range", default=None, help="Inclusive index range START-END.")
    parser.add_argument("--max-retries", dest="max_retries", type=int, default=None)
    parser.add_argument("--retry-delay", dest="retry_delay_seconds", type=float, default=None)
    parser.add_argument("--checkpoint-interval", dest="checkpoint_interval", type=int, default=None)
    parser.add_argument(
        "--resume",
        dest="resume_from_checkpoint",
        action="store_const",
        const=True,
        default=None,
        help="Continue after the last checkpoint.",
    )
    parser.add_argument("--log-dir", dest="log_dir", default=None)
    parser.add_argument("--log-level", dest="log_level", default=None)
    return parser


def resolve_settings(args: argparse.Namespace) -> UpdaterSettings:
    overrides = dict(vars(args))
    raw_range = overrides.pop("record_range", None)
    if overrides.get("log_level"):
        overrides["log_level"] = overrides["log_level"].upper()
    if overrides.get("network"):
        overrides["network"] = overrides["network"].lower()
    settings = with_overrides(load_updater_settings(), **overrides)
    if raw_range is not None:
        settings = with_overrides(settings, record_range=parse_index_range(raw_range))
    validate_settings(settings)
    return settings


def ask_confirmation(prompt: str, input_fn: Callable[[str], str] = input) -> bool:
    try:
        answer = input_fn(f"{prompt} (yes/no): ")
    except EOFError:
        return False
    return answer.strip().lower() in {"y", "yes"}


def install_cancel_handlers(cancel_event: threading.Event) -> dict[int, object]:
    """
    Route SIGINT/SIGTERM to ``cancel_event``; returns the previous handlers.
    """

    def _handler(signum: int, _frame: object) -> None:
        logger.warning("Received signal=%s; stopping after the current record", signum)
        cancel_event.set()

    previous: dict[int, object] = {}
    for signum in (signal.SIGINT, signal.SIGTERM):
        previous[signum] = signal.signal(signum, _handler)
    return previous


def restore_handlers(previous: dict[int, object]) -> None:
    for signum, handler in previous.items():
        signal.signal(signum, handler)


def main(argv: Sequence[str] | None = None, input_fn: Callable[[str], str] = input) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level or os.getenv("LOG_LEVEL", "INFO"))

    try:
        settings = resolve_settings(args)
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return EXIT_CONFIG_ERROR

    logger.info(
        "Configuration network=%s rpc_url=%s manifest=%s batch_size=%d dry_run=%s resume=%s range=%s",
        settings.network,
        settings.rpc_url,
        settings.manifest_path,
        settings.batch_size,
        settings.dry_run,
        settings.resume_from_checkpoint,
        settings.record_range,
    )

    try:
        signer = load_keypair_signer(settings.wallet_keypair_path)
    except KeypairLoadError as exc:
        logger.error("Cannot load wallet keypair: %s", exc)
        return EXIT_CONFIG_ERROR
    logger.info("Wallet loaded address=%s", signer.public_key)

    connector = LedgerRpcConnector.from_settings(settings)
    try:
        balance = lamports_to_sol(connector.get_balance(signer.public_key))
    except RpcRequestError as exc:
        logger.error("Cannot reach ledger rpc_url=%s error=%s", settings.rpc_url, exc)
        return EXIT_CONNECTION_ERROR
    logger.info("Wallet balance sol=%.6f", balance)

    try:
        manifest = load_manifest(settings.manifest_path)
    except ManifestHeaderError as exc:
        logger.error("%s", exc)
        return EXIT_CONFIG_ERROR

    records = manifest.records
    if settings.record_range is not None:
        records = filter_by_range(records, settings.record_range)
        logger.info("Applied range=%s records=%d", settings.record_range, len(records))

    cancel_event = threading.Event()
    orchestrator = build_batch_orchestrator(
        settings,
        client=connector,
        signer=signer,
        cancel_event=cancel_event,
    )
    try:
        plan = orchestrator.plan(records, settings.resume_from_checkpoint)
    except CheckpointCorruptError as exc:
        logger.error("%s", exc)
        return EXIT_CONFIG_ERROR

    if settings.resume_from_checkpoint and not plan.resumed:
        logger.warning("No checkpoint found, starting from the beginning")
    if not plan.pending:
        logger.warning("No records to process")
        return EXIT_OK

    estimated = estimate_cost(len(plan.pending))
    logger.info("Estimated cost records=%d sol=%.6f", len(plan.pending), estimated)
    if not settings.dry_run and not is_balance_sufficient(balance, len(plan.pending)):
        logger.warning(
            "Wallet balance may be insufficient recommended_sol=%.6f",
            recommended_balance(len(plan.pending)),
        )

    if not settings.skip_confirm:
        if settings.dry_run:
            logger.info("DRY RUN is enabled; no transactions will be sent")
        else:
            logger.warning("DRY RUN is disabled; transactions will be sent to %s", settings.network)
        if not ask_confirmation("Do you want to proceed?", input_fn):
            logger.info("Operation cancelled by user")
            return EXIT_OK

    previous_handlers = install_cancel_handlers(cancel_event)
    try:
        summary = orchestrator.run(
            records,
            chunk_size=settings.batch_size,
            inter_chunk_delay=settings.batch_delay_seconds,
            checkpoint_interval=settings.checkpoint_interval,
            resume=settings.resume_from_checkpoint,
            dry_run=settings.dry_run,
            record_delay=settings.record_delay_seconds,
            cancel_event=cancel_event,
        )
    except CheckpointCorruptError as exc:
        logger.error("%s", exc)
        return EXIT_CONFIG_ERROR
    finally:
        restore_handlers(previous_handlers)

    log_lines(logger, summary_lines(summary))
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
