"""Module dependency graph.

Holds every module discovered in the repository keyed by short name and
answers the two questions release computation asks: who depends on a
module, and in which order bumps must be propagated so that a dependency is
always handled before its dependents.
"""

from __future__ import annotations

import bisect
from collections.abc import Mapping

from .errors import CycleError
from .models import Module

# Canonical project names use hyphens, so "acme-lib-a" is module "lib-a" of "acme".
SEPARATOR = "-"


def internal_short_name(name: str, root: str) -> str | None:
    """Return the short name of an internal module identifier.

    Examples:
        internal_short_name("acme", "acme") → ""
        internal_short_name("acme-lib-a", "acme") → "lib-a"
        internal_short_name("requests", "acme") → None
    """
    if name == root:
        return ""
    prefix = root + SEPARATOR
    if name.startswith(prefix) and len(name) > len(prefix):
        return name[len(prefix) :]
    return None


class Graph:
    """Modules of one repository, keyed by short name ("" is the root)."""

    def __init__(self, root: Module, modules: Mapping[str, Module] | None = None):
        self.root = root
        self.modules: dict[str, Module] = {"": root}
        if modules:
            self.modules.update(modules)

    def find_module(self, short_name: str) -> Module | None:
        return self.modules.get(short_name)

    def is_internal(self, name: str) -> bool:
        """Whether a canonical project name belongs to this repository."""
        return internal_short_name(name, self.root.name) is not None

    def short_name(self, name: str) -> str | None:
        return internal_short_name(name, self.root.name)

    def dependents(self, short_name: str) -> list[Module]:
        """Modules that directly depend on short_name, sorted by short name."""
        found = [m for m in self.modules.values() if short_name in m.dependencies]
        return sorted(found, key=lambda m: m.short_name)

    def all_modules(self) -> list[Module]:
        return sorted(self.modules.values(), key=lambda m: m.short_name)

    def topological_sort(self) -> list[Module]:
        """Order modules so that dependencies come before their dependents.

        Uses Kahn's algorithm. Only dependencies present in the graph count
        towards a module's in-degree; anything else is external. The ready
        queue is kept sorted by short name, both initially and whenever a
        module becomes ready, so the order is reproducible across runs.

        Raises:
            CycleError: If some modules can never become ready.

        Example:
            If b depends on a, and c depends on a and b:
            topological_sort() → [root, a, b, c]
        """
        in_degree = {
            name: sum(1 for dep in mod.dependencies if dep in self.modules)
            for name, mod in self.modules.items()
        }

        queue = sorted(name for name, degree in in_degree.items() if degree == 0)
        order: list[Module] = []

        while queue:
            name = queue.pop(0)
            order.append(self.modules[name])
            for dependent in self.dependents(name):
                in_degree[dependent.short_name] -= 1
                if in_degree[dependent.short_name] == 0:
                    bisect.insort(queue, dependent.short_name)

        if len(order) != len(self.modules):
            emitted = {m.short_name for m in order}
            raise CycleError(sorted(set(self.modules) - emitted))

        return order
