"""Exceptions raised while scanning, analyzing and generating wiring code."""

from dataclasses import dataclass

__all__ = [
    "AutowireError",
    "DependencyError",
    "DuplicateProviderError",
    "MissingDependency",
    "MissingDependencyError",
    "CircularDependencyError",
    "DeclarationError",
    "UnsupportedTypeError",
    "ConflictingAnnotationError",
    "GenerationError",
    "NoAnnotationsError",
]


class AutowireError(Exception):
    """Base class for every failure reported by autowire."""

    pass


class DependencyError(AutowireError):
    """Raised when the provider graph cannot be resolved."""

    pass


class DuplicateProviderError(DependencyError):
    """Two providers produce a value for the same type key."""

    def __init__(self, key: str, first: str, second: str):
        self.key = key
        self.first = first
        self.second = second
        super().__init__(f"duplicate provider for {key}: {first} and {second}")


@dataclass(frozen=True)
class MissingDependency:
    """A single unmet dependency.

    Attributes:
        requester: Name of the provider or invocation declaring the dependency.
        key: Key of the type no provider produces.
    """

    requester: str
    key: str

    def __str__(self) -> str:
        return f"{self.requester} requires {self.key}"


class MissingDependencyError(DependencyError):
    """One or more dependencies have no provider."""

    def __init__(self, missing: list[MissingDependency]):
        self.missing = list(missing)
        details = "\n  ".join(str(m) for m in self.missing)
        super().__init__(f"missing dependencies:\n  {details}")


class CircularDependencyError(DependencyError):
    """The depends-on relation contains a loop.

    ``path`` starts and ends with the key that closes the loop.
    """

    def __init__(self, path: list[str]):
        self.path = list(path)
        super().__init__(f"circular dependency: {' -> '.join(self.path)}")


class DeclarationError(AutowireError):
    """Raised when an annotated declaration cannot be turned into a provider or invocation."""

    pass


class UnsupportedTypeError(DeclarationError):
    """A dependency or provided type has a shape autowire cannot wire."""

    pass


class ConflictingAnnotationError(DeclarationError):
    """A declaration is annotated as both a provider and an invocation."""

    pass


class GenerationError(AutowireError):
    """The emitted program is not valid Python."""

    pass


class NoAnnotationsError(AutowireError):
    """None of the scanned directories contain autowire directives."""

    def __init__(self, scan_dirs: list[str]):
        self.scan_dirs = list(scan_dirs)
        super().__init__(f"no autowire annotations found in: {', '.join(self.scan_dirs)}")
