"""High level entry points for generating wiring code."""

import logging
import sys
from pathlib import Path
from typing import Iterable, Optional

from autowire.analyzer import analyze
from autowire.config import WireConfig
from autowire.domain import ParseResult
from autowire.errors import NoAnnotationsError
from autowire.generator import generate
from autowire.resolver import NameResolver, PackageNameResolver
from autowire.scanner import output_module, scan

__all__ = ["merge_parse_results", "make_program", "wire"]

logger = logging.getLogger(__name__)


def merge_parse_results(results: Iterable[ParseResult], output_module: str) -> ParseResult:
    """Concatenate the declarations found in several scan roots."""
    results = list(results)
    return ParseResult(
        providers=tuple(p for r in results for p in r.providers),
        invocations=tuple(i for r in results for i in r.invocations),
        output_module=output_module,
    )


def make_program(parsed: ParseResult, resolver: Optional[NameResolver] = None) -> str:
    """Analyze scanned declarations and render the wiring module.

    Args:
        parsed: Declarations to wire, with the module the program will live in.
        resolver: Maps module paths to short names. Defaults to a
            :class:`PackageNameResolver` over ``sys.path``.

    Returns:
        The generated module source.

    Raises:
        DependencyError: If providers conflict, are missing or form a cycle.
        GenerationError: If the rendered module is not valid Python.
    """
    resolver = resolver or PackageNameResolver()
    return generate(analyze(parsed, resolver), resolver)


def wire(config: WireConfig, resolver: Optional[NameResolver] = None) -> Path:
    """Scan, analyze and generate according to ``config``, then write the module.

    Nothing is written if any stage fails.

    Returns:
        Path of the written module.

    Raises:
        NoAnnotationsError: If no scanned directory contains a directive.
        AutowireError: For any declaration, dependency or generation failure.
    """
    config = config.resolved()
    logger.debug("output dir: %s", config.out_dir)

    results = []
    for scan_dir in config.scan_dirs:
        logger.debug("scanning: %s", scan_dir)
        results.append(scan(scan_dir))

    parsed = merge_parse_results(results, output_module(config.out_dir, config.output_name))
    if not parsed.providers and not parsed.invocations:
        raise NoAnnotationsError(list(config.scan_dirs))

    logger.debug("found %d providers:", len(parsed.providers))
    for provider in parsed.providers:
        logger.debug("  - %s -> %s", provider.name, provider.provided_type.key)
    logger.debug("found %d invocations:", len(parsed.invocations))
    for invocation in parsed.invocations:
        logger.debug("  - %s", invocation.name)

    if resolver is None:
        resolver = PackageNameResolver(search_paths=_search_paths(config))
    code = make_program(parsed, resolver)

    output_path = config.output_path
    output_path.write_text(code, encoding="utf-8")
    return output_path


def _search_paths(config: WireConfig) -> list[str]:
    roots = {str(_source_root(Path(d))) for d in config.scan_dirs}
    roots.add(str(_source_root(Path(config.out_dir))))
    return sorted(roots) + [p for p in sys.path if p]


def _source_root(directory: Path) -> Path:
    while (directory / "__init__.py").is_file():
        directory = directory.parent
    return directory
