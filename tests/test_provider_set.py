import pytest

from autowire.errors import DuplicateProviderError, MissingDependency, MissingDependencyError
from autowire.provider_set import make_provider_set

from factories import func_provider, invocation, ref, struct_provider


def test_providers_are_indexed_by_key():
    config = func_provider("new_config", ref("Config"))
    database = func_provider("new_database", ref("Database"), ref("Config"))

    provider_set = make_provider_set([config, database])

    assert provider_set.provider_for("pkg.Config") == config
    assert provider_set.provider_for("pkg.Database") == database


@pytest.mark.parametrize("reverse", [False, True])
def test_duplicate_provider_raises_regardless_of_order(reverse):
    providers = [
        func_provider("new_config_a", ref("Config")),
        func_provider("new_config_b", ref("Config")),
    ]
    if reverse:
        providers.reverse()

    with pytest.raises(DuplicateProviderError, match="duplicate provider for pkg.Config") as e:
        make_provider_set(providers)

    assert {e.value.first, e.value.second} == {"new_config_a", "new_config_b"}
    assert e.value.key == "pkg.Config"


def test_duplicate_is_reported_before_missing_dependencies():
    providers = [
        func_provider("a", ref("Config"), ref("Missing")),
        func_provider("b", ref("Config")),
    ]

    with pytest.raises(DuplicateProviderError):
        make_provider_set(providers)


def test_indirect_and_direct_references_are_distinct_providers():
    provider_set = make_provider_set(
        [
            func_provider("new_backend", ref("Backend")),
            func_provider("backend_class", ref("Backend", indirect=True)),
        ]
    )

    assert set(provider_set.providers_by_key) == {"pkg.Backend", "*pkg.Backend"}


def test_all_missing_dependencies_are_reported_together():
    providers = [
        func_provider("new_service", ref("Service"), ref("Config"), ref("Database")),
        struct_provider(ref("Handler"), {"Service": ref("Service")}),
    ]
    invocations = [invocation("setup", ref("Router", "pkg.web"))]

    with pytest.raises(MissingDependencyError) as e:
        make_provider_set(providers, invocations)

    assert e.value.missing == [
        MissingDependency("new_service", "pkg.Config"),
        MissingDependency("new_service", "pkg.Database"),
        MissingDependency("setup", "pkg.web.Router"),
    ]
    message = str(e.value)
    assert message.startswith("missing dependencies:")
    assert "new_service requires pkg.Config" in message
    assert "new_service requires pkg.Database" in message
    assert "setup requires pkg.web.Router" in message


def test_empty_set_is_valid():
    assert make_provider_set([]).providers_by_key == {}
