"""Command line interface for compiling flow graphs into test suites.

Usage:
    flowtest compile graph.json                        # Print a Selenium suite
    flowtest compile graph.json -b cypress -o login.cy.js
    flowtest export graph.json --out generated/        # One file per entry point
    flowtest export graph.json --out suite.zip --zip
    flowtest backends                                  # List backends
    flowtest capture https://example.com --role button --name "Sign in"
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, Any

import typer

from flowtest.compiler import available_backends, compile_files, compile_graph, write_archive, write_directory
from flowtest.config import get_settings
from flowtest.core import load_graph_file
from flowtest.exceptions import FlowtestError

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="flowtest",
    help="Compile visual browser-test graphs into Selenium, Cypress or Playwright code.",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log compilation progress."),
    ] = False,
) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


GraphArgument = Annotated[
    Path,
    typer.Argument(help="Editor JSON export.", exists=True, file_okay=True, dir_okay=False),
]


@app.command("compile")
def compile_command(
    graph_path: GraphArgument,
    backend: Annotated[
        str | None,
        typer.Option("--backend", "-b", help="Target backend (see 'flowtest backends')."),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the suite here instead of stdout."),
    ] = None,
) -> None:
    """Compile every entry point of a graph into one suite."""
    try:
        graph = load_graph_file(graph_path)
        result = compile_graph(graph, backend)
    except FlowtestError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1) from None

    for warning in result.warnings:
        typer.echo(f"Warning: {warning}", err=True)
    if not result.ok:
        typer.echo(f"Error: {result.error}", err=True)
        raise typer.Exit(1)

    if output is None:
        typer.echo(result.source, nl=False)
        return
    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(result.source, encoding="utf-8")
    except OSError as exc:
        typer.echo(f"Error: could not write {output}: {exc}", err=True)
        raise typer.Exit(1) from None
    typer.echo(f"Wrote {', '.join(result.test_names)} to {output}")


@app.command("export")
def export_command(
    graph_path: GraphArgument,
    out: Annotated[
        Path,
        typer.Option("--out", help="Destination directory, or archive path with --zip."),
    ],
    as_zip: Annotated[
        bool,
        typer.Option("--zip", help="Pack the files into a ZIP archive."),
    ] = False,
    backend: Annotated[
        str | None,
        typer.Option("--backend", "-b", help="Backend for entry points without a framework."),
    ] = None,
) -> None:
    """Write one file per entry point, each in its own framework."""
    try:
        graph = load_graph_file(graph_path)
        files = compile_files(graph, backend)
        if not files:
            typer.echo('Error: no "Start Session" entry point found in the graph.', err=True)
            raise typer.Exit(1)
        if as_zip:
            archive = write_archive(files, out)
            typer.echo(f"Packed {len(files)} file(s) into {archive}")
        else:
            for path in write_directory(files, out):
                typer.echo(str(path))
    except FlowtestError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1) from None


@app.command("backends")
def backends_command() -> None:
    """List the available backends."""
    default = get_settings().default_backend
    for name in available_backends():
        typer.echo(f"{name} (default)" if name == default else name)


async def _capture_element(url: str, role: str, name: str, value: str, headed: bool) -> dict[str, Any] | None:
    from playwright.async_api import async_playwright

    from flowtest.capture import ElementCapture

    async with async_playwright() as playwright:
        browser = await playwright.chromium.launch(headless=not headed)
        try:
            page = await browser.new_page()
            await page.goto(url)
            return await ElementCapture().capture(page, role=role, name=name, value=value)
        finally:
            await browser.close()


@app.command("capture")
def capture_command(
    url: Annotated[str, typer.Argument(help="Page to open.")],
    role: Annotated[str, typer.Option("--role", "-r", help="ARIA role of the element.")],
    name: Annotated[str, typer.Option("--name", "-n", help="Accessible name of the element.")],
    value: Annotated[str, typer.Option("--value", help="Current value, for inputs.")] = "",
    headed: Annotated[bool, typer.Option("--headed", help="Show the browser window.")] = False,
) -> None:
    """Print ElementDescriptor data for an element on a live page."""
    data = asyncio.run(_capture_element(url, role, name, value, headed))
    if data is None:
        typer.echo(f"Error: no element with role {role!r} and name {name!r} on {url}", err=True)
        raise typer.Exit(1)
    typer.echo(json.dumps(data, indent=2))


if __name__ == "__main__":
    app()
