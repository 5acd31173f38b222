"""Collision-free naming of generated variables and module bindings."""

import keyword
import re
from dataclasses import replace
from typing import Iterable

from autowire.domain import Invocation, Provider
from autowire.resolver import NameResolver

__all__ = [
    "GENERATED_NAMES",
    "variable_name_for",
    "resolve_var_names",
    "collect_namespaces",
    "resolve_import_aliases",
]

# Names bound by the generated module itself.
GENERATED_NAMES = frozenset({"App", "initialize_app", "dataclass", "Optional", "err"})

_WORD_BOUNDARY = re.compile(r"(.)([A-Z][a-z]+)")
_LOWER_UPPER = re.compile(r"([a-z0-9])([A-Z])")


def variable_name_for(type_name: str) -> str:
    """Derive a local variable name from a type name.

    Leading underscores are dropped, so the name never starts with ``__`` and
    is never mangled when used as an attribute of a generated class.

    Example:
        >>> variable_name_for("HTTPClient")
        'http_client'
        >>> variable_name_for("_Impl")
        'impl'
        >>> variable_name_for("Class")
        'class_'
    """
    stripped = type_name.lstrip("_") or "value"
    name = _LOWER_UPPER.sub(r"\1_\2", _WORD_BOUNDARY.sub(r"\1_\2", stripped)).lower()
    if keyword.iskeyword(name):
        return name + "_"
    return name


class _NameClaims:
    """Hands out unique names, suffixing repeats with their occurrence count."""

    def __init__(self, reserved: Iterable[str] = ()):
        self._used = set(reserved)
        self._counts: dict[str, int] = {}

    def claim(self, base: str) -> str:
        if base not in self._used:
            self._used.add(base)
            return base

        count = self._counts.get(base, 0)
        while True:
            count += 1
            candidate = f"{base}{count}"
            if candidate not in self._used:
                break

        self._counts[base] = count
        self._used.add(candidate)
        return candidate


def resolve_var_names(ordered: Iterable[Provider]) -> list[Provider]:
    """Make variable names unique, walking providers in construction order.

    The first provider keeps its base name and later ones are suffixed:
    ``cfg``, ``cfg1``, ``cfg2``.
    """
    claims = _NameClaims()
    return [replace(p, var_name=claims.claim(p.var_name)) for p in ordered]


def collect_namespaces(
    providers: Iterable[Provider], invocations: Iterable[Invocation], output_module: str
) -> set[str]:
    """Gather every module the generated program has to import."""
    namespaces: set[str] = set()

    for provider in providers:
        namespaces.add(provider.namespace)
        namespaces.update(d.type.namespace for d in provider.dependencies)
        namespaces.add(provider.provided_type.namespace)

    for invocation in invocations:
        namespaces.add(invocation.namespace)
        namespaces.update(t.namespace for t in invocation.dependencies)

    namespaces.discard("")
    namespaces.discard(output_module)
    return namespaces


def resolve_import_aliases(
    namespaces: Iterable[str], resolver: NameResolver, reserved: Iterable[str] = ()
) -> dict[str, str]:
    """Assign each namespace a binding alias.

    Namespaces are processed in lexicographic order. The first to claim a
    short name gets the empty alias, meaning it is bound under the short name
    itself; later namespaces with the same short name get ``name1``, ``name2``
    and so on. Names in ``reserved`` count as already claimed.

    Args:
        namespaces: Module paths to import.
        resolver: Maps each module path to its short name.
        reserved: Names already bound in the generated module's scope.

    Returns:
        Mapping from module path to alias.
    """
    claims = _NameClaims(reserved)
    imports: dict[str, str] = {}

    for namespace in sorted(namespaces):
        short_name = resolver.resolve(namespace)
        claimed = claims.claim(short_name)
        imports[namespace] = "" if claimed == short_name else claimed

    return imports
