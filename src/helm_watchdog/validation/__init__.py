"""Image validation records: normalization, status aggregation and filtering."""

from .build import ProbeResult, RegistryProbe, build_validation_payload, plan_variant_checks
from .models import ImageValidationPayload, ImageValidationRecord, ImageVariantCheck, StatusCounts
from .normalize import count_validation_statuses, filter_missing, normalize_validation_payload
from .status import create_variant_tag, determine_overall_status

__all__ = [
    "ImageValidationPayload",
    "ImageValidationRecord",
    "ImageVariantCheck",
    "ProbeResult",
    "RegistryProbe",
    "StatusCounts",
    "build_validation_payload",
    "count_validation_statuses",
    "create_variant_tag",
    "determine_overall_status",
    "filter_missing",
    "normalize_validation_payload",
    "plan_variant_checks",
]
