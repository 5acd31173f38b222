"""Resolution of scanned declarations into an ordered, named wiring plan."""

import logging

from autowire.dependency_graph import build_order
from autowire.domain import AnalyzedResult, ParseResult
from autowire.naming import (
    GENERATED_NAMES,
    collect_namespaces,
    resolve_import_aliases,
    resolve_var_names,
)
from autowire.provider_set import make_provider_set
from autowire.resolver import NameResolver

__all__ = ["analyze"]

logger = logging.getLogger(__name__)


def analyze(parsed: ParseResult, resolver: NameResolver) -> AnalyzedResult:
    """Create an :class:`AnalyzedResult` for the scanned declarations.

    Providers are indexed by the key of the type they provide, checked for
    unmet dependencies, ordered so each provider follows its dependencies,
    and given unique variable names. Every module the generated program
    references is then assigned a collision-free alias.

    Args:
        parsed: Providers and invocations found by the scanner.
        resolver: Maps module paths to the short names they are bound under.

    Returns:
        The analyzed result. Invocations keep their declaration order.

    Raises:
        DuplicateProviderError: If two providers provide the same type.
        MissingDependencyError: Listing every dependency without a provider.
        CircularDependencyError: If the providers depend on each other in a loop.
    """
    provider_set = make_provider_set(parsed.providers, parsed.invocations)
    ordered = resolve_var_names(build_order(provider_set, parsed.providers, parsed.invocations))

    for position, provider in enumerate(ordered, start=1):
        logger.debug("  %d. %s (%s)", position, provider.name, provider.var_name)

    namespaces = collect_namespaces(ordered, parsed.invocations, parsed.output_module)
    reserved = GENERATED_NAMES.union(p.var_name for p in ordered)

    return AnalyzedResult(
        providers=tuple(ordered),
        invocations=tuple(parsed.invocations),
        output_module=parsed.output_module,
        imports=resolve_import_aliases(namespaces, resolver, reserved),
    )
