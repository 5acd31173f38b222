"""Domain models shared by the scanner, analyzer and generator."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

__all__ = [
    "TypeRef",
    "Dependency",
    "ProviderKind",
    "Provider",
    "Invocation",
    "ParseResult",
    "AnalyzedResult",
]


@dataclass(frozen=True)
class TypeRef:
    """A qualified reference to a type.

    Attributes:
        name: The type's identifier, e.g. ``Database``.
        namespace: Dotted module path owning the type. Empty for built-ins.
        is_indirect: True when the class object itself is referenced
            (``type[Database]``) rather than an instance.
    """

    name: str
    namespace: str = ""
    is_indirect: bool = False

    @property
    def key(self) -> str:
        """Canonical identity used to join dependencies to providers.

        Example:
            >>> TypeRef("Database", "myapp.db", True).key
            '*myapp.db.Database'
        """
        prefix = "*" if self.is_indirect else ""
        if not self.namespace:
            return prefix + self.name
        return f"{prefix}{self.namespace}.{self.name}"


@dataclass(frozen=True)
class Dependency:
    """A required type, optionally bound to a named field.

    Attributes:
        type: The required type.
        field_name: Attribute to assign the dependency to when constructing a
            class provider. None for positional (function parameter) dependencies.
    """

    type: TypeRef
    field_name: Optional[str] = None


class ProviderKind(Enum):
    STRUCT = "struct"
    FUNC = "func"


@dataclass(frozen=True)
class Provider:
    """An annotated declaration producing exactly one value.

    Attributes:
        name: Declared name of the class or function.
        kind: Whether the value is built by class construction or a function call.
        provided_type: The type this provider satisfies.
        dependencies: What the provider needs, in declaration order.
        can_fail: Whether construction may raise an error that must be propagated.
        namespace: Module the declaration lives in.
        var_name: Local binding name used for the value in generated code.
        keyword_init: For class providers, whether the class accepts its fields as
            keyword arguments. When false the instance is created empty and
            each field is assigned afterwards.
    """

    name: str
    kind: ProviderKind
    provided_type: TypeRef
    dependencies: tuple[Dependency, ...] = ()
    can_fail: bool = False
    namespace: str = ""
    var_name: str = ""
    keyword_init: bool = True


@dataclass(frozen=True)
class Invocation:
    """An annotated function run for its side effects once all values exist."""

    name: str
    dependencies: tuple[TypeRef, ...] = ()
    can_fail: bool = False
    namespace: str = ""


@dataclass(frozen=True)
class ParseResult:
    """Unordered providers and invocations discovered by the scanner.

    Attributes:
        providers: Providers in discovery order.
        invocations: Invocations in discovery order.
        output_module: Dotted module path the generated program will live in.
    """

    providers: tuple[Provider, ...] = ()
    invocations: tuple[Invocation, ...] = ()
    output_module: str = ""


@dataclass(frozen=True)
class AnalyzedResult:
    """Providers in construction order, ready for code generation."""

    providers: tuple[Provider, ...]
    """Providers ordered so every dependency precedes its dependents."""

    invocations: tuple[Invocation, ...]
    """Invocations in their original declaration order."""

    output_module: str
    """Dotted module path of the generated program."""

    imports: dict[str, str] = field(default_factory=dict)
    """Referenced namespaces mapped to their alias. An empty alias means the
    namespace is bound under its resolved short name."""
