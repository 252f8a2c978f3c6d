"""next-builder CLI: run builds, inspect mode, cache and routing decisions locally.

Commands:
- build ENTRYPOINT (writes lambdas as zip + .sha256, static files and routes.json)
- mode PATH
- serve ENTRYPOINT REQUEST_PATH
- cache ENTRYPOINT
"""

from __future__ import annotations

import json
import tempfile
import time
from pathlib import Path

import typer
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from next_builder.cache import prepare_cache
from next_builder.core import build as run_build
from next_builder.devserver import DEV_SERVERS
from next_builder.errors import BuilderError
from next_builder.files import exclude_files, glob
from next_builder.lambdas import Lambda
from next_builder.manifest import read_package_json
from next_builder.serve import should_serve
from next_builder.types import BuildMeta, BuildResult
from next_builder.versions import detect_mode

app = typer.Typer(add_completion=False, help="Build Next.js applications into per-page lambdas")
console = Console()


def _source_files(work_path: Path):
    return exclude_files(
        glob("**", work_path),
        lambda key: "node_modules/" in f"/{key}" or "/.next/" in f"/{key}",
    )


def _fail(exc: BuilderError) -> None:
    rprint(f"[red]Error:[/red] {exc}")
    raise typer.Exit(code=1)


@app.command()
def build(
    entrypoint: str = typer.Argument("package.json", help="package.json or next.config.js"),
    work_path: str = typer.Option(".", "--work-path", help="Project root"),
    out: str = typer.Option("./dist", help="Output directory for lambdas and routes.json"),
    dev: bool = typer.Option(False, "--dev", help="Start the dev server instead of building"),
    request_path: str | None = typer.Option(None, "--request-path", help="Request to route in dev mode"),
) -> None:
    root = Path(work_path)
    outdir = Path(out)
    meta = BuildMeta(is_dev=dev, request_path=request_path)
    if dev:
        _run_dev(root, entrypoint, meta)
        return

    # The build rewrites package.json and drops lockfiles, so it runs on a scratch copy.
    with tempfile.TemporaryDirectory(prefix="next-builder-") as scratch:
        try:
            result = run_build(_source_files(root), Path(scratch), entrypoint, meta)
        except BuilderError as exc:
            _fail(exc)
        _write_result(result, outdir)


def _run_dev(root: Path, entrypoint: str, meta: BuildMeta) -> None:
    try:
        result = run_build(_source_files(root), root, entrypoint, meta)
        for route in result.routes:
            rprint(f"[green]{route.src}[/green] -> {route.dest}")
        rprint("[cyan]Development server running (Ctrl-C to stop)...[/cyan]")
        while True:
            time.sleep(1)
    except BuilderError as exc:
        _fail(exc)
    except KeyboardInterrupt:
        rprint("[yellow]Stopping development server[/yellow]")
    finally:
        DEV_SERVERS.stop_all()


def _write_result(result: BuildResult, outdir: Path) -> None:
    outdir.mkdir(parents=True, exist_ok=True)
    table = Table(title="Build Summary")
    table.add_column("Output", style="cyan")
    table.add_column("Kind")
    table.add_column("Size", justify="right")
    for key, item in sorted(result.output.items()):
        if isinstance(item, Lambda):
            item.write(outdir / "lambdas", key)
            table.add_row(key, "lambda", f"{item.size:,}")
        else:
            target = outdir / "static" / key
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(item.read_bytes())
            table.add_row(key, "static", "")
    (outdir / "routes.json").write_text(
        json.dumps([r.model_dump() for r in result.routes], indent=2), encoding="utf-8"
    )
    console.print(table)
    for route in result.routes:
        rprint(f"[green]{route.src}[/green] -> {route.dest}")


@app.command()
def mode(path: str = typer.Argument(".", help="Directory containing package.json")) -> None:
    try:
        legacy = detect_mode(read_package_json(Path(path)))
    except BuilderError as exc:
        _fail(exc)
    print("legacy" if legacy else "serverless")


@app.command()
def serve(
    entrypoint: str = typer.Argument(..., help="package.json or next.config.js"),
    request_path: str = typer.Argument(..., help="Incoming request path"),
    work_path: str = typer.Option(".", "--work-path", help="Project root"),
) -> None:
    if should_serve(entrypoint, _source_files(Path(work_path)), request_path):
        print("yes")
        return
    print("no")
    raise typer.Exit(code=1)


@app.command()
def cache(
    entrypoint: str = typer.Argument("package.json", help="package.json or next.config.js"),
    work_path: str = typer.Option(".", "--work-path", help="Project root"),
) -> None:
    try:
        manifest = prepare_cache(Path(work_path), entrypoint)
    except BuilderError as exc:
        _fail(exc)

    table = Table(title="Cache Manifest")
    table.add_column("Path", style="cyan")
    for key in sorted(manifest):
        table.add_row(key)
    console.print(table)


if __name__ == "__main__":
    app()
