"""Indexing and completeness checks for a set of providers.

This module collects providers into a keyed index, rejecting two providers
for the same type, and verifies that every dependency declared by a provider
or an invocation is satisfied by some provider in the set. The resulting
ProviderSet is the input to dependency graph ordering.
"""

from dataclasses import dataclass
from typing import Iterable

from autowire.domain import Invocation, Provider
from autowire.errors import DuplicateProviderError, MissingDependency, MissingDependencyError

__all__ = ["ProviderSet", "make_provider_set"]


@dataclass(frozen=True)
class ProviderSet:
    """
    A validated set of providers.

    Attributes:
        providers_by_key: Mapping from provided type key to the single provider of that type.
    """

    providers_by_key: dict[str, Provider]

    def provider_for(self, key: str) -> Provider:
        return self.providers_by_key[key]


def make_provider_set(
    providers: Iterable[Provider], invocations: Iterable[Invocation] = ()
) -> ProviderSet:
    """
    Constructs a ProviderSet from providers and the invocations that consume them.

    Validates that:
      - Each provided type key is produced by exactly one provider.
      - Every dependency of every provider and invocation is produced by some provider.

    Raises:
        DuplicateProviderError: As soon as a second provider for a key is seen.
        MissingDependencyError: Listing every unmet dependency found in the set.

    Args:
        providers: Providers in declaration order.
        invocations: Invocations whose dependencies must also be satisfied.

    Returns:
        A ProviderSet indexing the providers by key.
    """
    providers = list(providers)
    providers_by_key = _providers_by_unique_key(providers)

    missing = _missing_dependencies(providers, list(invocations), providers_by_key)
    if missing:
        raise MissingDependencyError(missing)

    return ProviderSet(providers_by_key)


def _providers_by_unique_key(providers: list[Provider]) -> dict[str, Provider]:
    providers_by_key: dict[str, Provider] = {}

    for provider in providers:
        key = provider.provided_type.key
        if key in providers_by_key:
            raise DuplicateProviderError(key, providers_by_key[key].name, provider.name)
        providers_by_key[key] = provider

    return providers_by_key


def _missing_dependencies(
    providers: list[Provider],
    invocations: list[Invocation],
    providers_by_key: dict[str, Provider],
) -> list[MissingDependency]:
    missing = [
        MissingDependency(provider.name, dependency.type.key)
        for provider in providers
        for dependency in provider.dependencies
        if dependency.type.key not in providers_by_key
    ]
    missing.extend(
        MissingDependency(invocation.name, required.key)
        for invocation in invocations
        for required in invocation.dependencies
        if required.key not in providers_by_key
    )
    return missing
