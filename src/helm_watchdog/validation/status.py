from __future__ import annotations

from typing import Iterable, Literal, Protocol

VariantName = Literal["original", "amd64", "arm64"]
VariantStatus = Literal["found", "missing", "error"]
OverallStatus = Literal["all_found", "partial", "missing", "error"]

VARIANT_NAMES: tuple[VariantName, ...] = ("original", "amd64", "arm64")
VARIANT_STATUSES: tuple[VariantStatus, ...] = ("found", "missing", "error")
OVERALL_STATUSES: tuple[OverallStatus, ...] = ("all_found", "partial", "missing", "error")


class VariantLike(Protocol):
    name: str
    status: str


def determine_overall_status(variants: Iterable[VariantLike]) -> OverallStatus:
    """Reduce per-architecture checks to one verdict for the image.

    An `error` anywhere makes the result inconclusive. A found `original`
    tag (usually a multi-arch manifest) keeps the image usable, so it
    reports `partial` rather than `missing` when arch tags are absent.
    """
    checks = list(variants)
    statuses = [check.status for check in checks]
    if any(status == "error" for status in statuses):
        return "error"
    if all(status == "found" for status in statuses):
        return "all_found"
    if any(check.name == "original" and check.status == "found" for check in checks):
        return "partial"
    if all(status == "missing" for status in statuses):
        return "missing"
    return "partial"


def create_variant_tag(variant: str, base_tag: str) -> str:
    if variant == "original":
        return base_tag
    return f"{base_tag}-{variant}"
