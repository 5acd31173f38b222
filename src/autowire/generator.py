"""Rendering of an analyzed wiring plan into a Python module.

The generated module holds an ``App`` dataclass with one field per provided
value and an ``initialize_app`` function that builds each value in
construction order, then runs the invocations. Values whose construction is
declared as failing are guarded so the first failure is returned as
``(None, err)`` instead of propagating.
"""

import ast
from dataclasses import dataclass, field
from typing import Iterable

from autowire.domain import AnalyzedResult, Dependency, Invocation, Provider, ProviderKind, TypeRef
from autowire.errors import GenerationError
from autowire.resolver import NameResolver

__all__ = ["RenderContext", "generate"]

_INDENT = " " * 4

MODULE_HEADER = '''\
# Code generated by autowire. DO NOT EDIT.
"""Application wiring for ``{module}``."""

from dataclasses import dataclass
from typing import Optional
'''

ENTRY_SIGNATURE = "def initialize_app() -> tuple[Optional[App], Optional[Exception]]:"


@dataclass(frozen=True)
class RenderContext:
    """Everything needed to spell names and types inside the generated module.

    Attributes:
        output_module: Module the generated code lives in. Names from it are
            referenced unqualified.
        imports: Module paths mapped to their alias, as assigned by the analyzer.
        resolver: Supplies the short name of modules without an alias.
        var_names: Provided type keys mapped to the variable holding the value.
    """

    output_module: str
    imports: dict[str, str]
    resolver: NameResolver
    var_names: dict[str, str] = field(default_factory=dict)

    def binding(self, namespace: str) -> str:
        """Name the module ``namespace`` is bound to in the generated code."""
        return self.imports.get(namespace) or self.resolver.resolve(namespace)

    def qualified_name(self, name: str, namespace: str) -> str:
        if not namespace or namespace == self.output_module:
            return name
        return f"{self.binding(namespace)}.{name}"

    def format_type(self, type_ref: TypeRef) -> str:
        spelled = self.qualified_name(type_ref.name, type_ref.namespace)
        if type_ref.is_indirect:
            return f"type[{spelled}]"
        return spelled

    def args(self, types: Iterable[TypeRef]) -> str:
        return ", ".join(self.var_names[t.key] for t in types)


def generate(result: AnalyzedResult, resolver: NameResolver) -> str:
    """Render the wiring module for an analyzed result.

    Args:
        result: Providers in construction order, invocations and import aliases.
        resolver: Supplies short names for modules imported without an alias.

    Returns:
        The module source. Identical input always yields identical text.

    Raises:
        GenerationError: If the rendered text is not valid Python.
    """
    context = RenderContext(
        result.output_module,
        result.imports,
        resolver,
        {p.provided_type.key: p.var_name for p in result.providers},
    )

    out: list[str] = [MODULE_HEADER.format(module=result.output_module)]
    write_imports(out, result.imports, resolver)
    out.append('__all__ = ["App", "initialize_app"]\n\n\n')
    write_app_class(out, result.providers, context)
    out.append("\n\n")
    write_initializer(out, result.providers, result.invocations, context)

    source = "".join(out)
    try:
        ast.parse(source)
    except SyntaxError as e:
        raise GenerationError(f"generated code for {result.output_module} is invalid: {e}") from e
    return source


def write_imports(out: list[str], imports: dict[str, str], resolver: NameResolver):
    """Write one import per namespace, sorted by module path. Writes nothing when empty."""
    if not imports:
        out.append("\n")
        return

    lines = []
    for namespace in sorted(imports):
        parent, _, last = namespace.rpartition(".")
        binding = imports[namespace] or resolver.resolve(namespace)
        statement = f"from {parent} import {last}" if parent else f"import {last}"
        if binding != last:
            statement += f" as {binding}"
        lines.append(statement)

    out.append("\n" + "\n".join(lines) + "\n\n")


def write_app_class(out: list[str], providers: Iterable[Provider], context: RenderContext):
    out.append("@dataclass\nclass App:\n")
    fields = [
        f"{_INDENT}{p.var_name}: {context.format_type(p.provided_type)}\n" for p in providers
    ]
    out.append("".join(fields) or f"{_INDENT}pass\n")


def write_initializer(
    out: list[str],
    providers: tuple[Provider, ...],
    invocations: tuple[Invocation, ...],
    context: RenderContext,
):
    out.append(ENTRY_SIGNATURE + "\n")

    if providers:
        out.append(f"{_INDENT}# provide\n")
    for provider in providers:
        if provider.kind is ProviderKind.STRUCT:
            write_struct_init(out, provider, context)
        else:
            write_func_init(out, provider, context)

    if invocations:
        out.append(f"{_INDENT}# invoke\n")
    for invocation in invocations:
        write_invocation(out, invocation, context)

    if not providers:
        out.append(f"{_INDENT}return App(), None\n")
        return

    out.append(f"{_INDENT}return App(\n")
    for provider in providers:
        out.append(f"{_INDENT * 2}{provider.var_name}={provider.var_name},\n")
    out.append(f"{_INDENT}), None\n")


def write_struct_init(out: list[str], provider: Provider, context: RenderContext):
    """Construct a class provider from its field-tagged dependencies.

    Classes with a keyword constructor receive the fields as keyword
    arguments. Any other class is created empty and each field is assigned on
    the new instance. Dependencies without a field name are skipped.
    """
    fields = [(d.field_name, context.var_names[d.type.key]) for d in provider.dependencies if d.field_name]
    constructor = context.qualified_name(provider.name, provider.namespace)

    if provider.keyword_init:
        keywords = ", ".join(f"{name}={value}" for name, value in fields)
        _write_statement(out, f"{provider.var_name} = {constructor}({keywords})", provider.can_fail)
        return

    _write_statement(out, f"{provider.var_name} = {constructor}()", provider.can_fail)
    for name, value in fields:
        out.append(f"{_INDENT}{provider.var_name}.{name} = {value}\n")


def write_func_init(out: list[str], provider: Provider, context: RenderContext):
    function = context.qualified_name(provider.name, provider.namespace)
    arguments = context.args(_types(provider.dependencies))
    _write_statement(out, f"{provider.var_name} = {function}({arguments})", provider.can_fail)


def write_invocation(out: list[str], invocation: Invocation, context: RenderContext):
    function = context.qualified_name(invocation.name, invocation.namespace)
    _write_statement(out, f"{function}({context.args(invocation.dependencies)})", invocation.can_fail)


def _write_statement(out: list[str], statement: str, can_fail: bool):
    if not can_fail:
        out.append(f"{_INDENT}{statement}\n")
        return

    out.append(
        f"{_INDENT}try:\n"
        f"{_INDENT * 2}{statement}\n"
        f"{_INDENT}except Exception as err:\n"
        f"{_INDENT * 2}return None, err\n"
    )


def _types(dependencies: Iterable[Dependency]) -> list[TypeRef]:
    return [d.type for d in dependencies]
