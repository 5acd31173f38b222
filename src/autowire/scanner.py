"""Discovery of annotated providers and invocations in Python source trees.

A module-level class or function becomes part of the wiring when the comment
lines directly above it carry a directive::

    # autowire:provide
    class Service:
        db: Database

    # autowire:provide raises
    def connect(config: Config) -> Database:
        ...

    # autowire:invoke
    def register_routes(service: Service) -> None:
        ...

``raises`` marks a declaration whose failure must be propagated by the
generated program. Any other directive argument on a provider names the type
it should be registered as instead of its declared type.
"""

import ast
import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Iterator, Optional, Union

from autowire.domain import Dependency, Invocation, ParseResult, Provider, ProviderKind, TypeRef
from autowire.errors import ConflictingAnnotationError, DeclarationError, UnsupportedTypeError
from autowire.naming import variable_name_for

__all__ = [
    "DIRECTIVE_PROVIDE",
    "DIRECTIVE_INVOKE",
    "Directive",
    "parse_directive",
    "scan",
    "parse_source",
    "module_path_for",
    "output_module",
]

logger = logging.getLogger(__name__)

DIRECTIVE_PROVIDE = "autowire:provide"
DIRECTIVE_INVOKE = "autowire:invoke"
FLAG_RAISES = "raises"

BUILTIN_TYPES = frozenset({"bool", "bytearray", "bytes", "complex", "float", "int", "str"})

_TYPING_MODULES = frozenset({"", "typing", "collections", "collections.abc", "queue", "asyncio"})
_COLLECTIONS = frozenset(
    {
        "list", "List", "tuple", "Tuple", "set", "Set", "frozenset", "FrozenSet",
        "Sequence", "MutableSequence", "Iterable", "Collection", "deque", "Deque",
    }
)
_MAPPINGS = frozenset(
    {"dict", "Dict", "Mapping", "MutableMapping", "defaultdict", "DefaultDict", "OrderedDict"}
)
_QUEUES = frozenset({"Queue", "SimpleQueue", "LifoQueue", "PriorityQueue"})
_CALLABLES = frozenset({"Callable"})
_DYNAMIC = frozenset({"Any", "object"})
_BUILTIN_SPECIAL = frozenset({"dict", "frozenset", "list", "object", "set", "tuple", "type"})
_INDIRECT = frozenset({"type", "Type"})

_FunctionNode = Union[ast.FunctionDef, ast.AsyncFunctionDef]


@dataclass(frozen=True)
class Directive:
    """A parsed ``# autowire:...`` comment and its arguments."""

    args: tuple[str, ...] = ()

    @property
    def can_fail(self) -> bool:
        return FLAG_RAISES in self.args

    @property
    def interface(self) -> Optional[str]:
        return next((a for a in self.args if a != FLAG_RAISES), None)


def parse_directive(comments: list[str], directive: str) -> Optional[Directive]:
    """Find ``directive`` among comment lines.

    Example:
        >>> parse_directive(["# autowire:provide repo.Repository"], DIRECTIVE_PROVIDE)
        Directive(args=('repo.Repository',))
    """
    for comment in comments:
        text = comment.strip().lstrip("#").strip()
        if text == directive:
            return Directive()
        if text.startswith(directive + " "):
            return Directive(tuple(text[len(directive):].split()))
    return None


@dataclass(frozen=True)
class _ModuleContext:
    module: str
    package: str
    modules: dict[str, str]
    names: dict[str, tuple[str, str]]


def scan(scan_dir: Union[str, Path]) -> ParseResult:
    """Collect every annotated declaration below ``scan_dir``.

    Files are visited in sorted order, so the result only depends on the tree contents.

    Raises:
        DeclarationError: If an annotated declaration cannot be wired, or a
            scanned file is not valid Python.
    """
    root = Path(scan_dir).resolve()
    providers: list[Provider] = []
    invocations: list[Invocation] = []

    for path in _source_files(root):
        module = module_path_for(path)
        logger.debug("scanning %s as %s", path, module)
        parsed = parse_source(
            path.read_text(encoding="utf-8"), module, path.name == "__init__.py", str(path)
        )
        providers.extend(parsed.providers)
        invocations.extend(parsed.invocations)

    return ParseResult(tuple(providers), tuple(invocations))


def parse_source(source: str, module: str, is_package: bool = False, filename: str = "<string>") -> ParseResult:
    """Collect annotated declarations from the source of a single module."""
    try:
        tree = ast.parse(source, filename=filename)
    except SyntaxError as e:
        raise DeclarationError(f"{filename}: {e}") from e

    package = module if is_package else module.rpartition(".")[0]
    modules, names = _build_import_map(tree, package)
    context = _ModuleContext(module, package, modules, names)
    lines = source.splitlines()

    providers: list[Provider] = []
    invocations: list[Invocation] = []

    for node in tree.body:
        if not isinstance(node, (ast.ClassDef, ast.FunctionDef, ast.AsyncFunctionDef)):
            continue

        comments = _leading_comments(lines, node)
        provide = parse_directive(comments, DIRECTIVE_PROVIDE)
        invoke = parse_directive(comments, DIRECTIVE_INVOKE)
        if provide is None and invoke is None:
            continue

        try:
            if isinstance(node, ast.ClassDef):
                if provide is not None:
                    providers.append(_parse_class_provider(node, context, provide))
                continue

            if provide is not None and invoke is not None:
                raise ConflictingAnnotationError("cannot have both provide and invoke annotations")
            if isinstance(node, ast.AsyncFunctionDef):
                raise UnsupportedTypeError("async functions cannot be wired")
            if provide is not None:
                providers.append(_parse_func_provider(node, context, provide))
            else:
                invocations.append(_parse_invocation(node, context, invoke))
        except DeclarationError as e:
            raise type(e)(f"{filename}:{node.lineno}: {node.name}: {e}") from e

    return ParseResult(tuple(providers), tuple(invocations))


def package_path(directory: Path) -> str:
    """Dotted path of the package ``directory`` is, or an empty string."""
    parts = []
    while (directory / "__init__.py").is_file():
        parts.append(directory.name)
        directory = directory.parent
    return ".".join(reversed(parts))


def module_path_for(path: Path) -> str:
    package = package_path(path.parent)
    if path.name == "__init__.py":
        return package
    return f"{package}.{path.stem}" if package else path.stem


def output_module(out_dir: Union[str, Path], file_name: str) -> str:
    """Module path the generated file will be importable as."""
    return module_path_for(Path(out_dir).resolve() / file_name)


def should_skip(name: str, is_dir: bool) -> bool:
    if name.startswith(".") or (name.startswith("_") and name != "__init__.py"):
        return True
    if is_dir:
        return False
    return (
        not name.endswith(".py")
        or name.startswith("test_")
        or name.endswith("_test.py")
        or name.endswith("_gen.py")
    )


def _source_files(root: Path) -> Iterator[Path]:
    for directory, dirs, files in os.walk(root):
        dirs[:] = sorted(d for d in dirs if not should_skip(d, True))
        for name in sorted(files):
            if not should_skip(name, False):
                yield Path(directory) / name


def _leading_comments(lines: list[str], node: ast.stmt) -> list[str]:
    first = min([node.lineno] + [d.lineno for d in getattr(node, "decorator_list", [])])
    comments = []
    index = first - 2
    while index >= 0 and lines[index].strip().startswith("#"):
        comments.insert(0, lines[index])
        index -= 1
    return comments


def _build_import_map(tree: ast.Module, package: str) -> tuple[dict[str, str], dict[str, tuple[str, str]]]:
    """Map local bindings to the modules and names they were imported from.

    Imports guarded by ``if TYPE_CHECKING:`` or ``try`` blocks are included.
    """
    modules: dict[str, str] = {}
    names: dict[str, tuple[str, str]] = {}

    for node in _module_level_statements(tree.body):
        if isinstance(node, ast.Import):
            for alias in node.names:
                if alias.asname:
                    modules[alias.asname] = alias.name
                else:
                    head = alias.name.split(".")[0]
                    modules[head] = head
        elif isinstance(node, ast.ImportFrom):
            source = _absolute_module(node, package)
            for alias in node.names:
                if alias.name == "*":
                    continue
                names[alias.asname or alias.name] = (source, alias.name)

    return modules, names


def _module_level_statements(body: list[ast.stmt]) -> Iterator[ast.stmt]:
    for node in body:
        yield node
        if isinstance(node, ast.If):
            yield from _module_level_statements(node.body)
            yield from _module_level_statements(node.orelse)
        elif isinstance(node, ast.Try):
            yield from _module_level_statements(node.body)
            for handler in node.handlers:
                yield from _module_level_statements(handler.body)


def _absolute_module(node: ast.ImportFrom, package: str) -> str:
    if node.level == 0:
        return node.module or ""

    parts = package.split(".") if package else []
    up = node.level - 1
    if up > len(parts):
        raise DeclarationError(f"relative import beyond top-level package in {package or 'module'}")
    base = parts[: len(parts) - up]
    if node.module:
        base.append(node.module)
    return ".".join(base)


def resolve_type(expr: ast.expr, context: _ModuleContext) -> TypeRef:
    """Resolve an annotation expression to a :class:`TypeRef`.

    Raises:
        UnsupportedTypeError: For collections, mappings, queues, callables,
            ``Any``/``object``, unions, other generics and unknown module qualifiers.
    """
    if isinstance(expr, ast.Constant):
        if isinstance(expr.value, str):
            try:
                return resolve_type(ast.parse(expr.value, mode="eval").body, context)
            except SyntaxError as e:
                raise UnsupportedTypeError(f"invalid forward reference {expr.value!r}") from e
        raise UnsupportedTypeError(f"{expr.value!r} is not a type")

    if isinstance(expr, ast.Name):
        return _resolve_name(expr.id, context)

    if isinstance(expr, ast.Attribute):
        module = _resolve_module(_dotted_name(expr.value), context)
        _reject_special(expr.attr, module)
        return TypeRef(expr.attr, module)

    if isinstance(expr, ast.Subscript):
        origin = _origin_name(expr.value)
        if origin in _INDIRECT:
            inner = resolve_type(expr.slice, context)
            if inner.is_indirect:
                raise UnsupportedTypeError("nested type[...] is not supported")
            return replace(inner, is_indirect=True)
        raise _unsupported_generic(origin)

    if isinstance(expr, ast.BinOp) and isinstance(expr.op, ast.BitOr):
        raise UnsupportedTypeError("union types are not supported as dependencies")

    raise UnsupportedTypeError(f"unsupported type expression: {type(expr).__name__}")


def _resolve_name(name: str, context: _ModuleContext) -> TypeRef:
    if name in context.names:
        module, imported = context.names[name]
        _reject_special(imported, module)
        return TypeRef(imported, module)

    _reject_special(name, "")
    if name in BUILTIN_TYPES:
        return TypeRef(name)
    return TypeRef(name, context.module)


def _resolve_module(dotted: str, context: _ModuleContext) -> str:
    head, _, rest = dotted.partition(".")
    if head in context.modules:
        base = context.modules[head]
    elif head in context.names:
        base = ".".join(context.names[head])
    else:
        raise UnsupportedTypeError(f"unknown module alias: {head}")
    return f"{base}.{rest}" if rest else base


def _dotted_name(expr: ast.expr) -> str:
    if isinstance(expr, ast.Name):
        return expr.id
    if isinstance(expr, ast.Attribute):
        return f"{_dotted_name(expr.value)}.{expr.attr}"
    raise UnsupportedTypeError(f"unsupported type expression: {type(expr).__name__}")


def _origin_name(expr: ast.expr) -> str:
    if isinstance(expr, ast.Name):
        return expr.id
    if isinstance(expr, ast.Attribute):
        return expr.attr
    raise UnsupportedTypeError(f"unsupported type expression: {type(expr).__name__}")


def _category(name: str) -> Optional[str]:
    if name in _COLLECTIONS:
        return "collection"
    if name in _MAPPINGS:
        return "mapping"
    if name in _QUEUES:
        return "queue"
    if name in _CALLABLES:
        return "callable"
    return None


def _unsupported_generic(origin: str) -> UnsupportedTypeError:
    category = _category(origin)
    if category is not None:
        return UnsupportedTypeError(f"{category} types are not supported as dependencies")
    return UnsupportedTypeError(f"generic types are not supported as dependencies: {origin}")


def _reject_special(name: str, module: str):
    if module == "" and name not in _BUILTIN_SPECIAL:
        return
    if module not in _TYPING_MODULES:
        return
    if name in _DYNAMIC:
        raise UnsupportedTypeError("dynamic types (Any, object) are not supported as dependencies")
    if name in _INDIRECT:
        raise UnsupportedTypeError("type annotations must name the class, as in type[X]")
    if _category(name) is not None:
        raise _unsupported_generic(name)


def _is_class_var(annotation: ast.expr) -> bool:
    target = annotation.value if isinstance(annotation, ast.Subscript) else annotation
    try:
        return _origin_name(target) == "ClassVar"
    except UnsupportedTypeError:
        return False


def _resolve_interface(arg: str, context: _ModuleContext) -> TypeRef:
    try:
        expr = ast.parse(arg, mode="eval").body
    except SyntaxError as e:
        raise DeclarationError(f"invalid interface {arg!r}") from e
    try:
        return resolve_type(expr, context)
    except UnsupportedTypeError as e:
        raise UnsupportedTypeError(f"resolving interface {arg}: {e}") from e


def _parse_class_provider(node: ast.ClassDef, context: _ModuleContext, directive: Directive) -> Provider:
    dependencies = []
    for statement in node.body:
        if not isinstance(statement, ast.AnnAssign) or not isinstance(statement.target, ast.Name):
            continue
        field_name = statement.target.id
        if field_name.startswith("_") or _is_class_var(statement.annotation):
            continue
        try:
            dependency_type = resolve_type(statement.annotation, context)
        except UnsupportedTypeError as e:
            raise UnsupportedTypeError(f"field {field_name}: {e}") from e
        dependencies.append(Dependency(dependency_type, field_name))

    provided_type = TypeRef(node.name, context.module)
    if directive.interface:
        provided_type = _resolve_interface(directive.interface, context)

    return Provider(
        name=node.name,
        kind=ProviderKind.STRUCT,
        provided_type=provided_type,
        dependencies=tuple(dependencies),
        can_fail=directive.can_fail,
        namespace=context.module,
        var_name=variable_name_for(provided_type.name),
        keyword_init=_has_keyword_init(node),
    )


def _has_keyword_init(node: ast.ClassDef) -> bool:
    """Whether constructing the class accepts its fields as keyword arguments.

    Dataclasses and classes defining ``__init__`` do. Subclasses are assumed to
    inherit a keyword constructor, as models and named tuples do.
    """
    if node.bases:
        return True
    if any(_decorator_name(d) == "dataclass" for d in node.decorator_list):
        return True
    return any(isinstance(s, ast.FunctionDef) and s.name == "__init__" for s in node.body)


def _decorator_name(decorator: ast.expr) -> str:
    target = decorator.func if isinstance(decorator, ast.Call) else decorator
    if isinstance(target, ast.Name):
        return target.id
    if isinstance(target, ast.Attribute):
        return target.attr
    return ""


def _parse_func_provider(node: ast.FunctionDef, context: _ModuleContext, directive: Directive) -> Provider:
    if node.returns is None:
        raise UnsupportedTypeError("provider must declare a return type")
    if isinstance(node.returns, ast.Constant) and node.returns.value is None:
        raise UnsupportedTypeError("provider must return a value")

    dependencies = tuple(Dependency(t) for t in _parse_params(node, context))

    try:
        provided_type = resolve_type(node.returns, context)
    except UnsupportedTypeError as e:
        raise UnsupportedTypeError(f"return type: {e}") from e
    if directive.interface:
        provided_type = _resolve_interface(directive.interface, context)

    return Provider(
        name=node.name,
        kind=ProviderKind.FUNC,
        provided_type=provided_type,
        dependencies=dependencies,
        can_fail=directive.can_fail,
        namespace=context.module,
        var_name=variable_name_for(provided_type.name),
    )


def _parse_invocation(node: ast.FunctionDef, context: _ModuleContext, directive: Directive) -> Invocation:
    return Invocation(
        name=node.name,
        dependencies=tuple(_parse_params(node, context)),
        can_fail=directive.can_fail,
        namespace=context.module,
    )


def _parse_params(node: _FunctionNode, context: _ModuleContext) -> list[TypeRef]:
    arguments = node.args
    if arguments.vararg or arguments.kwarg:
        raise UnsupportedTypeError("variadic parameters are not supported")
    if arguments.kwonlyargs:
        raise UnsupportedTypeError("keyword-only parameters are not supported")

    types = []
    for argument in arguments.posonlyargs + arguments.args:
        if argument.annotation is None:
            raise UnsupportedTypeError(f"parameter {argument.arg} has no type annotation")
        try:
            types.append(resolve_type(argument.annotation, context))
        except UnsupportedTypeError as e:
            raise UnsupportedTypeError(f"parameter {argument.arg}: {e}") from e
    return types
