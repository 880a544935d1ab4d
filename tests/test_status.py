from __future__ import annotations

import itertools
from dataclasses import dataclass

import pytest
from helm_watchdog.validation.status import (
    OVERALL_STATUSES,
    VARIANT_NAMES,
    VARIANT_STATUSES,
    create_variant_tag,
    determine_overall_status,
)


@dataclass
class _Check:
    name: str
    status: str


def _checks(statuses: tuple[str, ...]) -> list[_Check]:
    return [_Check(name, status) for name, status in zip(VARIANT_NAMES, statuses)]


@pytest.mark.parametrize("statuses", list(itertools.product(VARIANT_STATUSES, repeat=3)))
def test_every_combination_follows_precedence(statuses: tuple[str, str, str]) -> None:
    result = determine_overall_status(_checks(statuses))
    assert result in OVERALL_STATUSES
    original = statuses[0]
    if "error" in statuses:
        assert result == "error"
    elif all(s == "found" for s in statuses):
        assert result == "all_found"
    elif original == "found":
        assert result == "partial"
    elif all(s == "missing" for s in statuses):
        assert result == "missing"
    else:
        assert result == "partial"


def test_error_wins_over_everything() -> None:
    assert determine_overall_status(_checks(("found", "found", "error"))) == "error"
    assert determine_overall_status(_checks(("error", "missing", "missing"))) == "error"


def test_found_original_is_usable_even_without_arch_tags() -> None:
    assert determine_overall_status(_checks(("found", "missing", "missing"))) == "partial"


def test_arch_only_tags_are_partial() -> None:
    assert determine_overall_status(_checks(("missing", "found", "missing"))) == "partial"


def test_original_is_matched_by_name_not_position() -> None:
    checks = [_Check("arm64", "missing"), _Check("original", "found")]
    assert determine_overall_status(checks) == "partial"


def test_empty_variant_list_is_all_found() -> None:
    assert determine_overall_status([]) == "all_found"


@pytest.mark.parametrize(
    ("variant", "expected"),
    [("original", "1.8.1"), ("amd64", "1.8.1-amd64"), ("arm64", "1.8.1-arm64")],
)
def test_create_variant_tag(variant: str, expected: str) -> None:
    assert create_variant_tag(variant, "1.8.1") == expected
