"""
updater/services package marker.
"""

from updater.services.authority_audit_service import AuthorityAuditReport, AuthorityAuditService
from updater.services.batch_orchestrator import BatchOrchestrator, RunPlan, build_batch_orchestrator
from updater.services.manifest_loader import ManifestHeaderError, filter_by_range, load_manifest
from updater.services.update_engine import UpdateEngine
from updater.services.verification_service import VerificationReport, VerificationService

__all__ = [
    "AuthorityAuditReport",
    "AuthorityAuditService",
    "BatchOrchestrator",
    "RunPlan",
    "build_batch_orchestrator",
    "ManifestHeaderError",
    "filter_by_range",
    "load_manifest",
    "UpdateEngine",
    "VerificationReport",
    "VerificationService",
]
