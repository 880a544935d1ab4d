from __future__ import annotations

import json
from pathlib import Path

import pytest
from helm_watchdog.cli import build_parser, main
from helm_watchdog.core.serialize import dumps_json
from helm_watchdog.exit_codes import ERR_CONFIG, ERR_DOCUMENT, ERR_PAYLOAD, ERR_USAGE, ERR_VALIDATION, OK


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "RUN_ID",
        "HELM_WATCHDOG_FORMAT",
        "HELM_WATCHDOG_LOG_JSON",
        "HELM_WATCHDOG_CONFIG",
        "HELM_WATCHDOG_REGISTRY_HOST",
        "HELM_WATCHDOG_REGISTRY_NAMESPACE",
        "HELM_WATCHDOG_VARIANTS",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def values_file(tmp_path: Path, chart_values: str) -> Path:
    path = tmp_path / "values.yaml"
    path.write_text(chart_values, encoding="utf-8")
    return path


@pytest.fixture
def image_map_file(tmp_path: Path) -> Path:
    path = tmp_path / "images.yaml"
    path.write_text("api:\n  repository: langgenius/dify-api\n  tag: 1.9.0\nghost:\n  tag: '1'\n", encoding="utf-8")
    return path


def test_parser_exposes_subcommands() -> None:
    ns = build_parser().parse_args(["--quiet", "values", "apply", "v.yaml", "--images", "m.yaml", "--fail-on-missing"])
    assert (ns.cmd, ns.values_cmd, ns.images, ns.fail_on_missing, ns.quiet) == ("values", "apply", "m.yaml", True, True)
    ns = build_parser().parse_args(["validation", "show", "p.json", "--missing"])
    assert (ns.cmd, ns.validation_cmd, ns.missing) == ("validation", "show", True)


def test_subcommand_is_required(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main([])
    assert excinfo.value.code == ERR_USAGE


def test_values_normalize(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "values.yaml"
    path.write_bytes("\ufeffa:\r\n\tb: 1\r\n".encode("utf-8"))
    assert main(["values", "normalize", str(path)]) == OK
    assert capsys.readouterr().out == "a:\n  b: 1\n"


def test_values_images_writes_map(values_file: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    out = tmp_path / "out/images.json"
    assert main(["--quiet", "values", "images", str(values_file), "--json", "--out", str(out)]) == OK
    printed = json.loads(capsys.readouterr().out)
    assert printed["web"] == {"repository": "langgenius/dify-web", "tag": "1.8.1"}
    assert json.loads(out.read_text(encoding="utf-8")) == printed


def test_values_apply_prints_updated_yaml(values_file: Path, image_map_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["values", "apply", str(values_file), "--images", str(image_map_file)]) == OK
    captured = capsys.readouterr()
    assert "    tag: \"1.9.0\"\n  replicas: 1\n" in captured.out
    assert "action=tag-path-missing" in captured.err
    assert "path=ghost.image.tag" in captured.err


def test_values_apply_json_and_out(
    values_file: Path, image_map_file: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    out = tmp_path / "patched.yaml"
    rc = main(["--format", "json", "values", "apply", str(values_file), "--images", str(image_map_file), "--out", str(out)])
    assert rc == OK
    captured = capsys.readouterr()
    payload = json.loads(captured.out)
    assert [change["status"] for change in payload["changes"]] == ["updated", "missing"]
    assert payload["updatedYaml"] == out.read_text(encoding="utf-8")
    events = [json.loads(line) for line in captured.err.splitlines()]
    assert {event["action"] for event in events} == {"apply", "tag-path-missing"}
    assert all(event["run_id"] for event in events)


def test_values_apply_text_ledger_with_out(
    values_file: Path, image_map_file: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    out = tmp_path / "patched.yaml"
    assert main(["--quiet", "values", "apply", str(values_file), "--images", str(image_map_file), "--out", str(out)]) == OK
    captured = capsys.readouterr()
    assert captured.out.splitlines() == [
        "updated   api.image.tag 1.8.1 -> 1.9.0",
        "missing   ghost.image.tag - -> 1",
        "updated=1 unchanged=0 missing=1",
    ]
    assert captured.err == ""


def test_values_apply_fail_on_missing(values_file: Path, image_map_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc = main(["--quiet", "values", "apply", str(values_file), "--images", str(image_map_file), "--fail-on-missing"])
    assert rc == ERR_VALIDATION


def test_parse_error_exit_code_and_json_error(tmp_path: Path, image_map_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    broken = tmp_path / "broken.yaml"
    broken.write_text("api:\n  image: x\n  tag: a: b\n", encoding="utf-8")
    rc = main(["--format", "json", "--quiet", "values", "apply", str(broken), "--images", str(image_map_file)])
    assert rc == ERR_DOCUMENT
    captured = capsys.readouterr()
    assert captured.out == ""
    err_lines = [json.loads(line) for line in captured.err.splitlines()]
    failure = err_lines[-1]
    assert failure["status"] == "fail"
    assert failure["error"]["kind"] == "document_parse_error"
    assert failure["error"]["line"] == 3


def test_unreadable_input_is_usage_error(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["values", "normalize", str(tmp_path / "absent.yaml")]) == ERR_USAGE
    assert "absent.yaml" in capsys.readouterr().err


def test_bad_config_exit_code(tmp_path: Path, values_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    config = tmp_path / "config.json"
    config.write_text(json.dumps({"variants": ["ppc"]}), encoding="utf-8")
    assert main(["--config", str(config), "values", "normalize", str(values_file)]) == ERR_CONFIG
    assert "unknown image variant" in capsys.readouterr().err


def _variants(*statuses: str) -> list[dict[str, str]]:
    return [{"name": n, "status": s} for n, s in zip(("original", "amd64", "arm64"), statuses)]


def _payload_file(tmp_path: Path) -> Path:
    payload = {
        "version": "1.8.1",
        "checkedAt": "2025-09-01T10:00:00.000Z",
        "host": "reg.example",
        "namespace": "dify",
        "images": [
            {"targetImageName": "dify-api", "sourceTag": "1.8.1", "variants": _variants("found", "found", "found")},
            {"targetImageName": "dify-web", "sourceTag": "1.8.1", "variants": _variants("missing", "missing", "missing")},
        ],
    }
    path = tmp_path / "validation.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_validation_show_missing(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--quiet", "validation", "show", str(_payload_file(tmp_path)), "--missing", "--json"]) == OK
    payload = json.loads(capsys.readouterr().out)
    assert [image["targetImageName"] for image in payload["images"]] == ["dify-web"]


def test_validation_show_text(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--quiet", "validation", "show", str(_payload_file(tmp_path))]) == OK
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "version 1.8.1 checked 2025-09-01T10:00:00.000Z registry reg.example/dify"
    assert lines[1].startswith("all_found dify-api:1.8.1 original=found")


def test_validation_summary(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["validation", "summary", str(_payload_file(tmp_path))]) == OK
    assert capsys.readouterr().out.strip() == "version=1.8.1 total=2 all_found=1 partial=0 missing=1 error=0"


def test_validation_bad_payload(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "bad.json"
    path.write_text('{"version": "1"}', encoding="utf-8")
    assert main(["validation", "summary", str(path)]) == ERR_PAYLOAD


def test_validation_plan(values_file: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setenv("HELM_WATCHDOG_REGISTRY_HOST", "reg.example")
    monkeypatch.setenv("HELM_WATCHDOG_VARIANTS", "original")
    assert main(["--quiet", "validation", "plan", str(values_file), "--json"]) == OK
    payload = json.loads(capsys.readouterr().out)
    assert payload["host"] == "reg.example"
    assert [check["image"] for check in payload["checks"]] == [
        "reg.example/dify-artifact/dify/dify-api:1.8.1",
        "reg.example/dify-artifact/dify/redis:7.2.4",
        "reg.example/dify-artifact/dify/postgresql:15.3.0",
        "reg.example/dify-artifact/dify/dify-web:1.8.1",
    ]


def test_values_normalize_keeps_lone_carriage_returns(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "values.yaml"
    path.write_bytes(b"a: 1\rb: 2\r\n")
    assert main(["values", "normalize", str(path)]) == OK
    assert capsys.readouterr().out == "a: 1\rb: 2\n"


def test_invalid_utf8_is_usage_error(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "values.yaml"
    path.write_bytes(b"tag: \xff\xfe\n")
    assert main(["values", "normalize", str(path)]) == ERR_USAGE
    err = capsys.readouterr().err
    assert "not valid UTF-8" in err
    assert "internal error" not in err


def test_json_output_is_compact_and_sorted() -> None:
    assert dumps_json({"b": 1, "a": ["é"]}) == '{"a": ["é"], "b": 1}'
