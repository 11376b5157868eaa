"""
Plain-text rendering of run, audit and verification results.
"""

from __future__ import annotations

import logging

from updater.domain.run import RunSummary
from updater.services.authority_audit_service import AuthorityAuditReport
from updater.services.verification_service import VerificationReport

_RULE = "=" * 48


def summary_lines(summary: RunSummary) -> list[str]:
    title = "RUN SUMMARY"
    if summary.dry_run:
        title += " (DRY RUN)"
    if summary.cancelled:
        title += " (CANCELLED)"

    lines = [
        _RULE,
        title,
        _RULE,
        f"Total processed:      {summary.total_processed}",
        f"Successfully updated: {summary.successfully_updated}",
        f"Skipped:              {summary.skipped}",
        f"Failed:               {summary.failed}",
        f"Total cost:           {summary.total_cost:.6f} SOL",
        f"Duration:             {summary.duration}",
    ]
    if summary.dry_run:
        lines.append("No transactions were submitted.")
    if summary.cancelled:
        lines.append("Run was interrupted; resume with --resume to continue.")
    elif summary.failed > 0:
        lines.append("Some records failed; resume with --resume to retry them.")
    return lines


def audit_lines(report: AuthorityAuditReport, total: int) -> list[str]:
    lines = [
        _RULE,
        "AUTHORITY SUMMARY",
        _RULE,
        f"Wallet:          {report.caller}",
        f"Total records:   {total}",
        f"Has authority:   {report.has_authority}",
        f"No authority:    {report.no_authority}",
        f"Not found:       {report.not_found}",
    ]
    for index, issue in enumerate(report.issues, start=1):
        lines.append(f"  {index}. {issue}")

    if report.all_authorized:
        lines.append("Wallet holds update authority for every record.")
    elif report.has_authority > 0:
        lines.append(f"Wallet can update {report.has_authority}/{total} records.")
    else:
        lines.append("Wallet holds update authority for none of the records.")
    return lines


def verification_lines(report: VerificationReport, total: int) -> list[str]:
    lines = [
        _RULE,
        "VERIFICATION SUMMARY",
        _RULE,
        f"Total records:   {total}",
        f"Verified:        {report.verified}",
        f"Mismatched:      {report.mismatched}",
        f"Logged skipped:  {report.logged_skips}",
    ]
    for index, issue in enumerate(report.issues, start=1):
        lines.append(f"  {index}. {issue}")
    return lines


def log_lines(logger: logging.Logger, lines: list[str], level: int = logging.INFO) -> None:
    for line in lines:
        logger.log(level, line)
