from __future__ import annotations

import json
import re
from pathlib import Path

import yaml
from typer.testing import CliRunner

from docschema.cli import app

CONFIG = """project_name: Test Project
sources:
  - name: tutorials
    adapter: frontmatter
    locator: content/tutorials
    kind: tutorial
"""

GOOD_TUTORIAL = """---
title: Pointers in OCaml
tags: [language]
date: 2024-05-01
---
Refs and mutation.
"""

UNDATED_TUTORIAL = """---
title: Modules
tags: [language]
---
"""


def _write_project(*documents: tuple[str, str], config: str = CONFIG) -> None:
    Path("docschema.yml").write_text(config, encoding="utf-8")
    tutorials = Path("content/tutorials")
    tutorials.mkdir(parents=True)
    for name, text in documents:
        (tutorials / name).write_text(text, encoding="utf-8")


def test_run_writes_artifacts() -> None:
    runner = CliRunner()
    with runner.isolated_filesystem():
        _write_project(("pointers.md", GOOD_TUTORIAL))

        result = runner.invoke(app, ["run"])

        assert result.exit_code == 0, result.output
        assert re.search(r"Outcome\W+clean", result.output)
        data = json.loads(Path("site/data/tutorial.json").read_text(encoding="utf-8"))
        assert data["items"][0]["slug"] == "pointers-in-ocaml"
        cms = yaml.safe_load(Path("site/admin/config.yml").read_text(encoding="utf-8"))
        assert cms["collections"][0]["name"] == "tutorial"
        assert Path("site/run-report.json").exists()


def test_run_reports_errors_and_fail_on_error_sets_exit_code() -> None:
    runner = CliRunner()
    with runner.isolated_filesystem():
        _write_project(("modules.md", UNDATED_TUTORIAL), ("pointers.md", GOOD_TUTORIAL))

        result = runner.invoke(app, ["run"])
        assert result.exit_code == 0, result.output
        assert "tutorial/modules" in result.output
        assert re.search(r"Required\s+field\s+'date'\s+is\s+missing", result.output)
        assert re.search(r"Outcome\W+has\s+errors", result.output)

        data = json.loads(Path("site/data/tutorial.json").read_text(encoding="utf-8"))
        assert [item["slug"] for item in data["items"]] == ["pointers-in-ocaml"]

        strict_result = runner.invoke(app, ["run", "--fail-on-error"])
        assert strict_result.exit_code == 1


def test_lint_clean_writes_nothing() -> None:
    runner = CliRunner()
    with runner.isolated_filesystem():
        _write_project(("pointers.md", GOOD_TUTORIAL))

        result = runner.invoke(app, ["lint"])

        assert result.exit_code == 0, result.output
        assert "Lint clean" in result.output
        assert not Path("site").exists()


def test_lint_flags_missing_required_field() -> None:
    runner = CliRunner()
    with runner.isolated_filesystem():
        _write_project(("modules.md", UNDATED_TUTORIAL))

        result = runner.invoke(app, ["lint"])

        assert result.exit_code == 1, result.output
        assert "missing" in result.output
        assert re.search(r"Summary\W+1\s+error\(s\)", result.output)


def test_lint_unknown_source_fails() -> None:
    runner = CliRunner()
    with runner.isolated_filesystem():
        _write_project(("pointers.md", GOOD_TUTORIAL))

        result = runner.invoke(app, ["lint", "--source", "videos"])

        assert result.exit_code == 1
        assert "Cannot run" in result.output


def test_cms_config_uses_schema_only() -> None:
    runner = CliRunner()
    with runner.isolated_filesystem():
        Path("docschema.yml").write_text("project_name: Empty\n", encoding="utf-8")

        result = runner.invoke(app, ["cms-config", "--output", "admin/cms.yml"])

        assert result.exit_code == 0, result.output
        assert re.search(r"6\s+collection\(s\)", result.output)
        cms = yaml.safe_load(Path("admin/cms.yml").read_text(encoding="utf-8"))
        assert len(cms["collections"]) == 6


def test_kinds_lists_fields() -> None:
    runner = CliRunner()
    with runner.isolated_filesystem():
        Path("docschema.yml").write_text("project_name: Empty\n", encoding="utf-8")

        result = runner.invoke(app, ["kinds"])

        assert result.exit_code == 0, result.output
        assert "tutorial" in result.output
        assert "* date: date" in result.output


def test_schema_error_aborts_before_any_output() -> None:
    runner = CliRunner()
    with runner.isolated_filesystem():
        Path("schema.yml").write_text(
            "kinds:\n  - name: tutorial\n    fields:\n      - {name: level, type: enum, rule: {enum: levels}}\n",
            encoding="utf-8",
        )
        _write_project(("pointers.md", GOOD_TUTORIAL), config=CONFIG + "schema_path: schema.yml\n")

        result = runner.invoke(app, ["run"])

        assert result.exit_code == 1
        assert "Schema error" in result.output
        assert "undefined enum" in result.output
        assert not Path("site").exists()


def test_missing_config_file() -> None:
    runner = CliRunner()
    with runner.isolated_filesystem():
        result = runner.invoke(app, ["run", "--config", "nowhere.yml"])

        assert result.exit_code == 1
        assert "Configuration not found" in result.output
