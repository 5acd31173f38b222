from pathlib import Path
from typing import Optional

from autowire.domain import Dependency, Invocation, Provider, ProviderKind, TypeRef
from autowire.naming import variable_name_for


class LastSegmentResolver:
    """Resolves module paths to their last segment, unless told otherwise."""

    def __init__(self, known: Optional[dict[str, str]] = None):
        self.known = known or {}
        self.calls: list[str] = []

    def resolve(self, namespace: str) -> str:
        self.calls.append(namespace)
        return self.known.get(namespace, namespace.rpartition(".")[2])


def ref(name: str, namespace: str = "pkg", indirect: bool = False) -> TypeRef:
    return TypeRef(name, namespace, indirect)


def func_provider(
    name: str,
    provided: TypeRef,
    *dependencies: TypeRef,
    can_fail: bool = False,
    namespace: Optional[str] = None,
    var_name: Optional[str] = None,
) -> Provider:
    return Provider(
        name=name,
        kind=ProviderKind.FUNC,
        provided_type=provided,
        dependencies=tuple(Dependency(d) for d in dependencies),
        can_fail=can_fail,
        namespace=provided.namespace if namespace is None else namespace,
        var_name=var_name or variable_name_for(provided.name),
    )


def struct_provider(
    provided: TypeRef,
    fields: Optional[dict[str, TypeRef]] = None,
    var_name: Optional[str] = None,
    keyword_init: bool = True,
) -> Provider:
    return Provider(
        name=provided.name,
        kind=ProviderKind.STRUCT,
        provided_type=provided,
        dependencies=tuple(Dependency(t, f) for f, t in (fields or {}).items()),
        namespace=provided.namespace,
        var_name=var_name or variable_name_for(provided.name),
        keyword_init=keyword_init,
    )


def invocation(name: str, *dependencies: TypeRef, can_fail: bool = False, namespace: str = "pkg.setup") -> Invocation:
    return Invocation(name=name, dependencies=tuple(dependencies), can_fail=can_fail, namespace=namespace)


SHOP_MODULES = {
    "cache.py": '''\
from {package}.config import Config


# autowire:provide
class Cache:
    config: Config
    _entries: dict
''',
    "config.py": '''\
from dataclasses import dataclass


@dataclass
class Config:
    dsn: str = "memory://"


# autowire:provide
def new_config() -> Config:
    return Config()
''',
    "db.py": '''\
from {package}.config import Config


class Database:
    def __init__(self, dsn: str):
        self.dsn = dsn


# autowire:provide raises
def connect(config: Config) -> Database:
    if {failing}:
        raise ConnectionError("cannot reach " + config.dsn)
    return Database(config.dsn)
''',
    "service.py": '''\
from dataclasses import dataclass

from {package}.db import Database


# autowire:provide
@dataclass
class Service:
    database: Database
''',
    "routes.py": '''\
from {package}.service import Service

registered = []


# autowire:invoke
def register(service: Service) -> None:
    registered.append(service)
''',
}


def write_shop(root: Path, package: str, failing: bool = False) -> Path:
    """Write a small importable package wired by autowire directives."""
    directory = root / package
    directory.mkdir()
    (directory / "__init__.py").write_text("")
    for file_name, source in SHOP_MODULES.items():
        (directory / file_name).write_text(source.format(package=package, failing=failing))
    return directory
