"""Task dependency graph algorithms.

Graphs are indexed by task position: ``requires[i]`` lists the task
indices that must run before task ``i``.
"""

import heapq
from collections.abc import Iterator, Sequence


def find_cycle(requires: Sequence[Sequence[int]]) -> list[int] | None:
    """Find a cycle using depth-first search with a recursion-stack marker.

    Nodes are visited in index order, so the reported cycle is
    deterministic for a given graph.

    Args:
        requires: Adjacency lists, ``requires[i]`` = predecessors of ``i``.

    Returns:
        Node indices along the cycle with the first repeated at the end,
        or None if the graph is acyclic.
    """
    visited = [False] * len(requires)
    on_stack = [False] * len(requires)

    for root in range(len(requires)):
        if visited[root]:
            continue
        # explicit frames keep long dependency chains off the interpreter stack
        path: list[int] = [root]
        frames: list[Iterator[int]] = [iter(requires[root])]
        visited[root] = True
        on_stack[root] = True
        while frames:
            neighbor = next(frames[-1], None)
            if neighbor is None:
                frames.pop()
                on_stack[path.pop()] = False
                continue
            if on_stack[neighbor]:
                start = path.index(neighbor)
                return [*path[start:], neighbor]
            if not visited[neighbor]:
                visited[neighbor] = True
                on_stack[neighbor] = True
                path.append(neighbor)
                frames.append(iter(requires[neighbor]))
    return None


def topological_order(requires: Sequence[Sequence[int]]) -> list[int]:
    """Order nodes with Kahn's algorithm, lowest index first among ready nodes.

    Args:
        requires: Adjacency lists, ``requires[i]`` = predecessors of ``i``.

    Returns:
        Node indices in an order where every node follows its predecessors.

    Raises:
        ValueError: If the graph contains a cycle.
    """
    count = len(requires)
    pending = [len(set(predecessors)) for predecessors in requires]
    dependents: list[list[int]] = [[] for _ in range(count)]
    for node, predecessors in enumerate(requires):
        for predecessor in set(predecessors):
            dependents[predecessor].append(node)

    ready = [node for node in range(count) if pending[node] == 0]
    heapq.heapify(ready)
    order: list[int] = []
    while ready:
        node = heapq.heappop(ready)
        order.append(node)
        for dependent in dependents[node]:
            pending[dependent] -= 1
            if pending[dependent] == 0:
                heapq.heappush(ready, dependent)

    if len(order) != count:
        msg = "Graph contains a cycle"
        raise ValueError(msg)
    return order
