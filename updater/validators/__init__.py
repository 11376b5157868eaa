"""
updater/validators package marker.
"""

from updater.validators.manifest_validator import ManifestRowValidator

__all__ = [
    "ManifestRowValidator",
]
