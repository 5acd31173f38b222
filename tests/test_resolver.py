from concurrent.futures import ThreadPoolExecutor

import pytest

from autowire.resolver import PackageNameResolver, fallback_name, is_version_suffix


@pytest.mark.parametrize(
    "namespace, expected",
    [
        ("myapp.db", "db"),
        ("json", "json"),
        ("vendor.chi.v5", "chi"),
        ("yaml.v3", "yaml"),
        ("vendor.client_v2", "client"),
        ("v2", "v2"),
        ("vendor.v2api", "v2api"),
        ("vendor.vx", "vx"),
    ],
)
def test_fallback_name(namespace, expected):
    assert fallback_name(namespace) == expected


@pytest.mark.parametrize(
    "segment, expected",
    [("v1", True), ("v10", True), ("v", False), ("va", False), ("version", False), ("2", False)],
)
def test_is_version_suffix(segment, expected):
    assert is_version_suffix(segment) is expected


@pytest.fixture
def source_root(tmp_path):
    api = tmp_path / "api"
    api.mkdir()
    (api / "__init__.py").write_text("")
    (api / "v2.py").write_text("")
    (tmp_path / "single.py").write_text("")
    return tmp_path


def test_found_module_resolves_to_its_last_segment(source_root):
    resolver = PackageNameResolver(search_paths=[str(source_root)])

    assert resolver.resolve("api.v2") == "v2"
    assert resolver.resolve("api") == "api"
    assert resolver.resolve("single") == "single"


def test_unknown_module_falls_back_with_version_stripped(source_root):
    resolver = PackageNameResolver(search_paths=[str(source_root)])

    assert resolver.resolve("vendor.yaml.v3") == "yaml"


def test_results_are_cached(tmp_path):
    resolver = PackageNameResolver(search_paths=[str(tmp_path)])
    assert resolver.resolve("late.v2") == "late"

    (tmp_path / "late").mkdir()
    (tmp_path / "late" / "__init__.py").write_text("")
    (tmp_path / "late" / "v2.py").write_text("")

    assert resolver.resolve("late.v2") == "late"
    assert PackageNameResolver(search_paths=[str(tmp_path)]).resolve("late.v2") == "v2"


def test_concurrent_resolution_is_consistent(source_root):
    resolver = PackageNameResolver(search_paths=[str(source_root)])
    namespaces = ["api.v2", "vendor.chi.v5", "single"] * 50

    with ThreadPoolExecutor(max_workers=8) as pool:
        names = list(pool.map(resolver.resolve, namespaces))

    assert set(zip(namespaces, names)) == {("api.v2", "v2"), ("vendor.chi.v5", "chi"), ("single", "single")}
