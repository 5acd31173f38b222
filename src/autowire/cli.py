"""Command-line interface for autowire."""

import logging
from typing import Optional

import typer

from autowire.builders import wire
from autowire.config import DEFAULT_OUTPUT_NAME, WireConfig, configure_logging
from autowire.errors import AutowireError

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="autowire",
    help="Autowire generates dependency injection code from annotations.",
    add_completion=False,
)


@app.command()
def main(
    scan: Optional[list[str]] = typer.Option(
        None, "--scan", "-s", help="Directory to scan for autowire annotations (repeatable)"
    ),
    out: str = typer.Option(".", "--out", "-o", help="Output directory for generated code"),
    name: str = typer.Option(DEFAULT_OUTPUT_NAME, "--name", "-n", help="Output file name"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
):
    """
    Scan Python sources for autowire annotations and generate the wiring module.

    Provider and invocation annotations are analyzed for conflicts, missing
    dependencies and cycles before a single module is written that builds
    every provided value in dependency order.
    """
    config = WireConfig(
        scan_dirs=tuple(scan or ["."]),
        out_dir=out,
        output_name=name,
        verbose=verbose,
    )
    configure_logging(config.verbose)

    try:
        output_path = wire(config)
    except AutowireError as e:
        logger.error("autowire: %s", e)
        raise typer.Exit(code=1)

    typer.echo(f"autowire: generated {output_path}")


if __name__ == "__main__":
    app()
