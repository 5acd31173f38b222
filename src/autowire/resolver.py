"""Resolution of module paths to the short names generated code binds them to."""

import logging
import re
import sys
from pathlib import Path
from typing import Iterable, Optional, Protocol

from autowire.cache import ComputeCache

__all__ = ["NameResolver", "PackageNameResolver", "fallback_name"]

logger = logging.getLogger(__name__)

_BARE_VERSION = re.compile(r"v[0-9]+")
_GLUED_VERSION = re.compile(r"^(?P<name>.+?)_v[0-9]+$")


class NameResolver(Protocol):
    """Anything able to map a module path to a short binding name."""

    def resolve(self, namespace: str) -> str:
        ...


class PackageNameResolver:
    """Resolve module paths to short names, memoized for the resolver's lifetime.

    Modules are located on the search path without being imported. A module
    that cannot be found gets a syntactic guess from :func:`fallback_name`.

    Example:
        >>> resolver = PackageNameResolver(search_paths=[])
        >>> resolver.resolve("vendor.yaml.v3")
        'yaml'
    """

    def __init__(self, search_paths: Optional[Iterable[str]] = None):
        self._search_paths = [
            Path(p) for p in (sys.path if search_paths is None else search_paths) if p
        ]
        self._cache: ComputeCache[str, str] = ComputeCache()

    def resolve(self, namespace: str) -> str:
        return self._cache.get_or_compute(namespace, self._lookup)

    def _lookup(self, namespace: str) -> str:
        segments = namespace.split(".")
        for root in self._search_paths:
            module_dir = root.joinpath(*segments)
            if module_dir.with_suffix(".py").is_file() or (module_dir / "__init__.py").is_file():
                logger.debug("resolved %s from %s", namespace, root)
                return segments[-1]

        name = fallback_name(namespace)
        logger.debug("module %s not found on search path, guessed %s", namespace, name)
        return name


def fallback_name(namespace: str) -> str:
    """Guess a short name from a module path alone.

    Example:
        >>> fallback_name("myapp.db")
        'db'
        >>> fallback_name("vendor.chi.v5")
        'chi'
        >>> fallback_name("vendor.client_v2")
        'client'
    """
    segments = namespace.split(".")
    last = segments[-1]
    if is_version_suffix(last) and len(segments) > 1:
        return segments[-2]

    glued = _GLUED_VERSION.match(last)
    if glued:
        return glued.group("name")
    return last


def is_version_suffix(segment: str) -> bool:
    return _BARE_VERSION.fullmatch(segment) is not None
