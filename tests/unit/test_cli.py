from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from next_builder import toolchain
from next_builder.cli import app

runner = CliRunner()


def test_mode_reports_legacy_and_serverless(tmp_path: Path, write_tree) -> None:
    legacy = write_tree(tmp_path / "legacy", {"package.json": {"dependencies": {"next": "7.0.2"}}})
    modern = write_tree(tmp_path / "modern", {"package.json": {"dependencies": {"next": "^8.1.0"}}})

    result = runner.invoke(app, ["mode", str(legacy)])
    assert result.exit_code == 0, result.output
    assert result.output.strip() == "legacy"

    result = runner.invoke(app, ["mode", str(modern)])
    assert result.output.strip() == "serverless"


def test_mode_without_next_dependency_fails(tmp_path: Path, write_tree) -> None:
    write_tree(tmp_path, {"package.json": {"dependencies": {}}})
    result = runner.invoke(app, ["mode", str(tmp_path)])
    assert result.exit_code == 1
    assert "No Next.js version" in result.output


def test_serve_exit_code(tmp_path: Path, write_tree) -> None:
    write_tree(tmp_path, {"package.json": {}, "pages/about.js": ""})

    ok = runner.invoke(app, ["serve", "package.json", "/about", "--work-path", str(tmp_path)])
    missing = runner.invoke(app, ["serve", "package.json", "/nope", "--work-path", str(tmp_path)])

    assert (ok.exit_code, ok.output.strip()) == (0, "yes")
    assert (missing.exit_code, missing.output.strip()) == (1, "no")


def test_build_leaves_the_project_directory_untouched(tmp_path: Path, write_tree, monkeypatch) -> None:
    project = write_tree(
        tmp_path / "app",
        {
            "package.json": {"dependencies": {"next": "7.0.2"}},
            "yarn.lock": "# lock",
            "pages/index.js": "",
        },
    )
    original_manifest = (project / "package.json").read_text(encoding="utf-8")

    def fake_install(root, args=None) -> None:
        return None

    def fake_script(root, script_name) -> bool:
        write_tree(
            Path(root),
            {
                ".next/BUILD_ID": "abc123",
                ".next/server/static/abc123/pages/index.js": "index",
                ".next/static/runtime/main.js": "main",
            },
        )
        return True

    monkeypatch.setattr(toolchain, "run_npm_install", fake_install)
    monkeypatch.setattr(toolchain, "run_package_json_script", fake_script)
    out = tmp_path / "dist"

    result = runner.invoke(app, ["build", "package.json", "--work-path", str(project), "--out", str(out)])

    assert result.exit_code == 0, result.output
    assert (project / "yarn.lock").exists()
    assert (project / "package.json").read_text(encoding="utf-8") == original_manifest
    assert not (project / ".next").exists()
    assert (out / "lambdas" / "index.zip").exists()
    assert (out / "static" / "_next" / "static" / "runtime" / "main.js").read_text(encoding="utf-8") == "main"
