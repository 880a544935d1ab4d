"""Assemble validation payloads from registry probe results.

The probe itself (HTTP, auth, retries) belongs to the caller; this module only
decides which references to probe and folds the answers into records.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Protocol

from ..core.clock import utc_now_iso
from ..values.images import ImageEntry, ImageGroup, dedupe_image_entries, natural_key, resolve_target_image_name
from .models import ImageValidationPayload, ImageValidationRecord, ImageVariantCheck
from .status import VariantStatus, create_variant_tag

if TYPE_CHECKING:
    from ..config import WatchdogSettings


@dataclass(frozen=True)
class ProbeResult:
    status: VariantStatus
    http_status: int | None = None
    error: str | None = None


class RegistryProbe(Protocol):
    def __call__(self, image: str, variant: str) -> ProbeResult: ...


@dataclass(frozen=True)
class PlannedCheck:
    target_image_name: str
    variant: str
    tag: str
    image: str
    source: str
    paths: tuple[str, ...]


def repository_path(settings: WatchdogSettings, target_image_name: str) -> str:
    return f"{settings.registry_namespace.rstrip('/')}/{target_image_name}"


def plan_group_checks(group: ImageGroup, settings: WatchdogSettings) -> list[PlannedCheck]:
    target = resolve_target_image_name(group.repository)
    repo_path = repository_path(settings, target)
    planned = []
    for variant in settings.variants:
        tag = create_variant_tag(variant, group.tag)
        planned.append(
            PlannedCheck(
                target_image_name=target,
                variant=variant,
                tag=tag,
                image=f"{settings.registry_host.rstrip('/')}/{repo_path}:{tag}",
                source=group.reference,
                paths=tuple(group.paths),
            )
        )
    return planned


def plan_variant_checks(entries: Iterable[tuple[str, ImageEntry]], settings: WatchdogSettings) -> list[PlannedCheck]:
    planned: list[PlannedCheck] = []
    for group in dedupe_image_entries(entries):
        planned.extend(plan_group_checks(group, settings))
    return planned


def run_probe(probe: RegistryProbe, image: str, variant: str) -> ProbeResult:
    try:
        return probe(image, variant)
    except Exception as exc:
        return ProbeResult(status="error", error=str(exc) or exc.__class__.__name__)


def build_validation_payload(
    version: str,
    entries: Iterable[tuple[str, ImageEntry]],
    probe: RegistryProbe,
    settings: WatchdogSettings,
    checked_at: str | None = None,
) -> ImageValidationPayload:
    """Probe every variant of every distinct image and build the payload.

    Probes run once each, in order; a probe that raises is recorded as an
    `error` variant and never retried.
    """
    stamp = checked_at or utc_now_iso()
    records: list[ImageValidationRecord] = []
    for group in dedupe_image_entries(entries):
        variants = []
        for check in plan_group_checks(group, settings):
            result = run_probe(probe, check.image, check.variant)
            variants.append(
                ImageVariantCheck(
                    name=check.variant,  # type: ignore[arg-type]
                    tag=check.tag,
                    image=check.image,
                    status=result.status,
                    checked_at=stamp,
                    http_status=result.http_status,
                    error=result.error,
                )
            )
        records.append(
            ImageValidationRecord(
                source_repository=group.repository,
                source_tag=group.tag,
                target_image_name=resolve_target_image_name(group.repository),
                paths=tuple(group.paths),
                variants=tuple(variants),
            )
        )
    records.sort(key=lambda record: natural_key(record.target_image_name))
    return ImageValidationPayload(
        version=version,
        checked_at=stamp,
        host=settings.registry_host,
        namespace=settings.registry_namespace,
        images=tuple(records),
    )
