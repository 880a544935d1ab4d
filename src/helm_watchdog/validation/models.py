from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Iterable

from .status import OverallStatus, VariantName, VariantStatus, determine_overall_status


@dataclass(frozen=True)
class ImageVariantCheck:
    name: VariantName
    tag: str
    image: str
    status: VariantStatus
    checked_at: str
    http_status: int | None = None
    error: str | None = None

    def to_json(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "name": self.name,
            "tag": self.tag,
            "image": self.image,
            "status": self.status,
            "checkedAt": self.checked_at,
        }
        if self.http_status is not None:
            payload["httpStatus"] = self.http_status
        if self.error:
            payload["error"] = self.error
        return payload


@dataclass(frozen=True)
class ImageValidationRecord:
    source_repository: str
    source_tag: str
    target_image_name: str
    paths: tuple[str, ...]
    variants: tuple[ImageVariantCheck, ...]

    @property
    def status(self) -> OverallStatus:
        return determine_overall_status(self.variants)

    def to_json(self) -> dict[str, Any]:
        return {
            "sourceRepository": self.source_repository,
            "sourceTag": self.source_tag,
            "targetImageName": self.target_image_name,
            "paths": list(self.paths),
            "variants": [variant.to_json() for variant in self.variants],
            "status": self.status,
        }


@dataclass(frozen=True)
class ImageValidationPayload:
    version: str
    checked_at: str
    host: str
    namespace: str
    images: tuple[ImageValidationRecord, ...]

    def with_images(self, images: Iterable[ImageValidationRecord]) -> "ImageValidationPayload":
        return replace(self, images=tuple(images))

    def to_json(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "checkedAt": self.checked_at,
            "host": self.host,
            "namespace": self.namespace,
            "images": [record.to_json() for record in self.images],
        }


@dataclass(frozen=True)
class StatusCounts:
    total: int = 0
    all_found: int = 0
    partial: int = 0
    missing: int = 0
    error: int = 0

    def to_json(self) -> dict[str, int]:
        return {
            "total": self.total,
            "allFound": self.all_found,
            "partial": self.partial,
            "missing": self.missing,
            "error": self.error,
        }
