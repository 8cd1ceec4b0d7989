# modloader/mods/sorter.py
from __future__ import annotations
import heapq
import logging

from modloader.core.errors import ErrorKind
from modloader.mods.diagnostics import Diagnostics
from modloader.mods.entry import LoadingEntry
from modloader.mods.resolver import DependencyGraph

logger = logging.getLogger(__name__)

__all__ = ["LoadOrderSorter"]



class LoadOrderSorter:
    """
    Dependencies first, ties broken by registration index; load-last entries
    are then moved to the end without disturbing either group's relative order.
    """
    def sort(self, graph: DependencyGraph, diagnostics: Diagnostics) -> list[LoadingEntry] | None:
        order = self.topologicalSort(graph, diagnostics)
        if order is None:
            return None
        return [graph.entryAt(index) for index in self.finalize(graph, order)]

    def topologicalSort(self, graph: DependencyGraph, diagnostics: Diagnostics) -> list[int] | None:
        # Kahn's algorithm on dependency -> dependent edges; the min-heap keeps
        # the earliest registered node first among those that are ready.
        dependents: list[list[int]] = [[] for _ in range(len(graph) + 1)]
        pending = [0] * (len(graph) + 1)
        for node in graph.nodes():
            for dependency in graph.requires[node]:
                dependents[dependency].append(node)
                pending[node] += 1

        ready = [node for node in graph.nodes() if pending[node] == 0]
        heapq.heapify(ready)
        order: list[int] = []
        while ready:
            node = heapq.heappop(ready)
            order.append(node)
            for dependent in dependents[node]:
                pending[dependent] -= 1
                if pending[dependent] == 0:
                    heapq.heappush(ready, dependent)

        if len(order) != len(graph):
            cycleNode = self._findCycleNode(graph, pending)
            modId = graph.entryAt(cycleNode).modId
            message = f"Cycle dependency found in sorting graph at modid: {modId}"
            logger.error(message)
            diagnostics.fatal(ErrorKind.CYCLE_DETECTED, message, (modId,))
            return None
        return order

    @staticmethod
    def _findCycleNode(graph: DependencyGraph, pending: list[int]) -> int:
        """
        Every unsorted node still waits on an unsorted dependency, so walking
        those dependencies from any unsorted node must revisit a node; that
        node lies on a cycle.
        """
        start = min(node for node in graph.nodes() if pending[node] > 0)
        seen: set[int] = set()
        node = start
        while node not in seen:
            seen.add(node)
            node = next(dep for dep in graph.requires[node] if pending[dep] > 0)
        return node

    @staticmethod
    def finalize(graph: DependencyGraph, order: list[int]) -> list[int]:
        head = [index for index in order if not graph.entryAt(index).loadLast]
        tail = [index for index in order if graph.entryAt(index).loadLast]
        return head + tail
