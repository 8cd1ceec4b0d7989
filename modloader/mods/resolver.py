# modloader/mods/resolver.py
from __future__ import annotations
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from modloader.core.errors import ErrorKind
from modloader.mods.diagnostics import Diagnostics
from modloader.mods.entry import LoadingEntry
from modloader.semver.semver import VersionRange

logger = logging.getLogger(__name__)

__all__ = ["DependencyGraph", "DependencyResolver"]



@dataclass
class DependencyGraph:
    """
    Array-backed graph over dense node indices 1..N.

    `requires[i]` lists the nodes node i depends on, in the order the edges
    were added. Index 0 is unused so indices match registration positions.
    """
    entries: list[LoadingEntry] = field(default_factory=list)
    requires: list[list[int]] = field(default_factory=lambda: [[]])
    indexById: dict[str, int] = field(default_factory=dict)

    def addNode(self, entry: LoadingEntry) -> int:
        index = len(self.entries) + 1
        self.entries.append(entry)
        self.requires.append([])
        self.indexById[entry.modId] = index
        return index

    def addEdge(self, requirer: int, dependency: int) -> None:
        if dependency not in self.requires[requirer]:
            self.requires[requirer].append(dependency)

    def entryAt(self, index: int) -> LoadingEntry:
        return self.entries[index - 1]

    def nodes(self) -> range:
        return range(1, len(self.entries) + 1)

    def __len__(self) -> int:
        return len(self.entries)



class DependencyResolver:
    """
    Builds the dependency graph and validates every declared constraint.

    Every entry is checked before anything is decided, so a single run
    reports all unmet requirements at once.
    """
    def resolve(self, entries: Sequence[LoadingEntry], diagnostics: Diagnostics) -> DependencyGraph | None:
        graph = DependencyGraph()
        for entry in entries:
            if entry.isValid:
                graph.addNode(entry)

        for entry in graph.entries:
            self._iterateDependencies(graph, entry, entry.descriptor.dependencies, diagnostics, optional=False)
            self._iterateDependencies(graph, entry, entry.descriptor.optionalDependencies, diagnostics, optional=True)

        if diagnostics.hasFatal:
            logger.critical("Found missing dependencies:")
            for diag in diagnostics.fatals:
                logger.critical(diag.message)
            return None

        logger.debug(
            "Dependency graph built: %d nodes, %d edges",
            len(graph),
            sum(len(edges) for edges in graph.requires),
        )
        return graph

    def _iterateDependencies(
        self,
        graph: DependencyGraph,
        entry: LoadingEntry,
        dependencies: Mapping[str, VersionRange],
        diagnostics: Diagnostics,
        *,
        optional: bool,
    ) -> None:
        selfId = entry.modId
        for depModId, versionRange in dependencies.items():
            depIndex = graph.indexById.get(depModId)
            depEntry = graph.entryAt(depIndex) if depIndex is not None else None

            if depEntry is None:
                kind = ErrorKind.MISSING_DEPENDENCY
                reason = "not installed"
            elif not versionRange.matches(depEntry.descriptor.version):
                kind = ErrorKind.VERSION_MISMATCH
                reason = f"version mismatch (found {depEntry.descriptor.version})"
            else:
                graph.addEdge(graph.indexById[selfId], depIndex)
                continue

            label = "optionally requires" if optional else "requires"
            message = f"{selfId} {label} {depModId}({versionRange}): {reason}"
            if optional:
                diagnostics.info(kind, message, (selfId, depModId))
            else:
                diagnostics.fatal(kind, message, (selfId, depModId))
