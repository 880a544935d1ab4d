from __future__ import annotations

import json
from typing import Any, Iterable, Mapping

from ..contracts import IMAGE_VALIDATION_SCHEMA, schema_errors
from ..core.clock import parse_iso, to_iso, utc_now_iso
from ..errors import PayloadParseError
from .models import ImageValidationPayload, ImageValidationRecord, ImageVariantCheck, StatusCounts
from .status import VARIANT_NAMES, VARIANT_STATUSES, VariantName, VariantStatus


def normalize_validation_payload(raw_json: str, now: str | None = None) -> ImageValidationPayload:
    """Parse validation JSON into the canonical payload.

    Record statuses are always recomputed from their variants; whatever the
    input claims is ignored.
    """
    try:
        payload = json.loads(raw_json)
    except json.JSONDecodeError as exc:
        raise PayloadParseError(f"validation payload is not valid JSON: {exc.msg} (line {exc.lineno}, col {exc.colno})") from exc
    errors = schema_errors(IMAGE_VALIDATION_SCHEMA, payload)
    if errors:
        raise PayloadParseError(f"validation payload is invalid: {errors[0]}")
    fallback = now or utc_now_iso()
    return ImageValidationPayload(
        version=_text(payload.get("version")),
        checked_at=_timestamp(payload, fallback),
        host=_text(payload.get("host")),
        namespace=_text(payload.get("namespace")),
        images=tuple(normalize_validation_record(record, fallback) for record in payload["images"]),
    )


def normalize_validation_record(record: Mapping[str, Any], now: str) -> ImageValidationRecord:
    paths = record.get("paths")
    variants = record.get("variants")
    return ImageValidationRecord(
        source_repository=_text(record.get("sourceRepository")),
        source_tag=_text(record.get("sourceTag")),
        target_image_name=_text(record.get("targetImageName")),
        paths=tuple(_text(path) for path in paths) if isinstance(paths, list) else (),
        variants=tuple(normalize_validation_variant(v, now) for v in variants) if isinstance(variants, list) else (),
    )


def normalize_validation_variant(variant: Mapping[str, Any], now: str) -> ImageVariantCheck:
    http_status = variant.get("httpStatus")
    error = variant.get("error")
    return ImageVariantCheck(
        name=_variant_name(variant.get("name")),
        tag=_text(variant.get("tag")),
        image=_text(variant.get("image")),
        status=_variant_status(variant.get("status")),
        checked_at=_timestamp(variant, now),
        http_status=http_status if isinstance(http_status, int) and not isinstance(http_status, bool) else None,
        error=str(error) if error else None,
    )


def filter_missing(payload: ImageValidationPayload) -> ImageValidationPayload:
    """Keep only records whose overall status is `missing`; the input is untouched."""
    return payload.with_images(record for record in payload.images if record.status == "missing")


def count_validation_statuses(images: Iterable[ImageValidationRecord]) -> StatusCounts:
    tally = {"all_found": 0, "partial": 0, "missing": 0, "error": 0}
    total = 0
    for record in images:
        total += 1
        tally[record.status] += 1
    return StatusCounts(total=total, **tally)


def _variant_name(value: Any) -> VariantName:
    name = _text(value).lower()
    for known in VARIANT_NAMES:
        if name == known:
            return known
    return "original"


def _variant_status(value: Any) -> VariantStatus:
    status = _text(value).lower()
    for known in VARIANT_STATUSES:
        if status == known:
            return known
    return "error"


def _timestamp(source: Mapping[str, Any], fallback: str) -> str:
    raw = source.get("checkedAt") or source.get("checkTime")
    parsed = parse_iso(raw)
    return to_iso(parsed) if parsed is not None else fallback


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
