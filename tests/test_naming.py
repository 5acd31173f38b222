import pytest

from autowire.naming import (
    collect_namespaces,
    resolve_import_aliases,
    resolve_var_names,
    variable_name_for,
)

from factories import LastSegmentResolver, func_provider, invocation, ref, struct_provider


@pytest.mark.parametrize(
    "type_name, expected",
    [
        ("Config", "config"),
        ("config", "config"),
        ("HTTPClient", "http_client"),
        ("DB", "db"),
        ("myType", "my_type"),
        ("UserRepository", "user_repository"),
        ("Class", "class_"),
        ("str", "str"),
        ("_Impl", "impl"),
        ("__Private", "private"),
        ("_", "value"),
    ],
)
def test_variable_name_for(type_name, expected):
    assert variable_name_for(type_name) == expected


def test_repeated_var_names_are_suffixed_in_order():
    providers = [
        func_provider("load_a", ref("Cfg", "a")),
        func_provider("load_b", ref("Cfg", "b")),
        func_provider("load_c", ref("Cfg", "c")),
    ]

    assert [p.var_name for p in resolve_var_names(providers)] == ["cfg", "cfg1", "cfg2"]


def test_distinct_var_names_are_unchanged():
    providers = [func_provider("new_config", ref("Config")), func_provider("new_db", ref("Database"))]

    assert [p.var_name for p in resolve_var_names(providers)] == ["config", "database"]


def test_suffixed_names_never_collide_with_base_names():
    providers = [
        func_provider("a", ref("Cfg", "a")),
        func_provider("b", ref("Cfg1", "b"), var_name="cfg1"),
        func_provider("c", ref("Cfg", "c")),
    ]

    assert [p.var_name for p in resolve_var_names(providers)] == ["cfg", "cfg1", "cfg2"]


def test_collect_namespaces_skips_builtins_and_output_module():
    providers = [
        func_provider("new_server", ref("Server", "pkg.http"), ref("str", ""), ref("Config", "pkg.config")),
        struct_provider(ref("Handler", "app"), {"server": ref("Server", "pkg.http")}),
    ]
    invocations = [invocation("serve", ref("Server", "pkg.http"), namespace="pkg.cmd")]

    namespaces = collect_namespaces(providers, invocations, "app")

    assert namespaces == {"pkg.http", "pkg.config", "pkg.cmd"}


def test_collect_namespaces_includes_interface_modules():
    providers = [func_provider("new_sql_repo", ref("Repository", "pkg.repo"), namespace="pkg.sql")]

    assert collect_namespaces(providers, [], "app") == {"pkg.repo", "pkg.sql"}


def test_unique_short_names_get_empty_aliases():
    aliases = resolve_import_aliases({"pkg.config", "pkg.db"}, LastSegmentResolver())

    assert aliases == {"pkg.config": "", "pkg.db": ""}


@pytest.mark.parametrize(
    "namespaces",
    [["net.http", "vendor.http"], ["vendor.http", "net.http"]],
)
def test_colliding_short_names_are_suffixed_in_lexicographic_order(namespaces):
    aliases = resolve_import_aliases(namespaces, LastSegmentResolver())

    assert aliases == {"net.http": "", "vendor.http": "http1"}


def test_third_collision_gets_next_suffix():
    aliases = resolve_import_aliases(["a.log", "b.log", "c.log"], LastSegmentResolver())

    assert aliases == {"a.log": "", "b.log": "log1", "c.log": "log2"}


def test_resolver_short_names_drive_collisions():
    resolver = LastSegmentResolver({"vendor.chi.v5": "chi", "vendor.yaml.v3": "yaml"})

    aliases = resolve_import_aliases(["vendor.chi.v5", "vendor.yaml.v3", "mirror.chi"], resolver)

    assert aliases == {"mirror.chi": "", "vendor.chi.v5": "chi1", "vendor.yaml.v3": ""}


def test_reserved_names_force_an_alias():
    aliases = resolve_import_aliases(["pkg.config", "pkg.db"], LastSegmentResolver(), reserved={"config"})

    assert aliases == {"pkg.config": "config1", "pkg.db": ""}
