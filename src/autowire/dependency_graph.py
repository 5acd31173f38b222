"""Cycle-safe topological ordering of providers.

Providers are ordered by a depth-first traversal of the depends-on relation.
A provider is emitted only after everything it depends on has been emitted,
so the resulting order can be used directly as a construction sequence.
"""

from enum import Enum
from typing import Iterable, Iterator

from autowire.domain import Invocation, Provider
from autowire.errors import CircularDependencyError
from autowire.provider_set import ProviderSet

__all__ = ["DependencyGraph", "build_order"]


class _VisitState(Enum):
    UNVISITED = 0
    IN_PROGRESS = 1
    DONE = 2


class DependencyGraph:
    """
    Traverses the provider graph of a validated ProviderSet.

    Each node is unvisited, in progress (on the current traversal path) or
    done. Reaching an in-progress node again is a cycle. Visit state is owned
    by the graph instance, so separate graphs can be ordered independently.
    """

    def __init__(self, provider_set: ProviderSet):
        self._provider_set = provider_set
        self._states: dict[str, _VisitState] = {}
        self._order: list[Provider] = []

    def order(self, providers: Iterable[Provider], invocations: Iterable[Invocation] = ()) -> list[Provider]:
        """
        Compute a construction order.

        Traversal starts from every invocation's dependencies, in declaration
        order, then from every provider in declaration order so providers no
        invocation reaches are still included.

        Returns:
            Providers such that each appears after all of its dependencies.

        Raises:
            CircularDependencyError: If a dependency loop is found. The reported
                path starts and ends with the key closing the loop.
        """
        for invocation in invocations:
            for required in invocation.dependencies:
                self._visit(self._provider_set.provider_for(required.key))

        for provider in providers:
            self._visit(provider)

        return list(self._order)

    def _state(self, key: str) -> _VisitState:
        return self._states.get(key, _VisitState.UNVISITED)

    def _visit(self, root: Provider):
        if self._state(root.provided_type.key) is _VisitState.DONE:
            return

        self._states[root.provided_type.key] = _VisitState.IN_PROGRESS
        path: list[tuple[Provider, Iterator]] = [(root, iter(root.dependencies))]

        while path:
            provider, pending = path[-1]
            dependency = next(pending, None)

            if dependency is None:
                path.pop()
                self._states[provider.provided_type.key] = _VisitState.DONE
                self._order.append(provider)
                continue

            dependency_provider = self._provider_set.provider_for(dependency.type.key)
            key = dependency_provider.provided_type.key
            state = self._state(key)

            if state is _VisitState.IN_PROGRESS:
                keys = [p.provided_type.key for p, _ in path]
                raise CircularDependencyError(keys[keys.index(key):] + [key])
            if state is _VisitState.DONE:
                continue

            self._states[key] = _VisitState.IN_PROGRESS
            path.append((dependency_provider, iter(dependency_provider.dependencies)))


def build_order(
    provider_set: ProviderSet, providers: Iterable[Provider], invocations: Iterable[Invocation] = ()
) -> list[Provider]:
    return DependencyGraph(provider_set).order(providers, invocations)
