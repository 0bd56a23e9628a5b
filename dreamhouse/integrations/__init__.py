"""Integration check helpers."""

from .checks import (
    IntegrationCheckResult,
    check_gallery_storage,
    check_image_api,
    run_all_checks,
)

__all__ = [
    "IntegrationCheckResult",
    "check_gallery_storage",
    "check_image_api",
    "run_all_checks",
]
