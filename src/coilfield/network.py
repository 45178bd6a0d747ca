"""Current-continuity analysis of wire networks.

Builds a NetworkX multigraph from a :class:`~coilfield.wires.WireList`
in which nodes are segment endpoints (rounded so that touching
endpoints merge) and every segment is a directed edge carrying its
current.  Kirchhoff's current law then reads as "inflow equals outflow
at every node"; nodes that violate it are open ends, and the field of a
network with open ends is not a physical magnetostatic field.
"""

from __future__ import annotations

import logging

import networkx as nx
import numpy as np

from coilfield.wires import WireList

log = logging.getLogger(__name__)

Node = tuple[float, float, float]


def _node(point: np.ndarray, decimals: int) -> Node:
    # "+ 0.0" folds -0.0 into 0.0 so mirrored endpoints merge
    x, y, z = (float(c) + 0.0 for c in np.round(point, decimals))
    return (x, y, z)


def wire_graph(wires: WireList, decimals: int = 9) -> nx.MultiDiGraph:
    """Build a directed multigraph of the wire network.

    Args:
        wires: Segments to analyse.
        decimals: Endpoint coordinates are rounded to this many decimal
            places before being used as node keys.

    Returns:
        ``MultiDiGraph`` with ``pos`` on nodes and ``current``/``index``
        on edges.
    """
    g = nx.MultiDiGraph()
    for idx in range(len(wires)):
        a = wires.A[idx]
        b = wires.B[idx]
        u = _node(a, decimals)
        v = _node(b, decimals)
        g.add_node(u, pos=a.copy())
        g.add_node(v, pos=b.copy())
        g.add_edge(u, v, current=float(wires.current[idx]), index=idx)
    return g


def net_currents(wires: WireList, decimals: int = 9) -> dict[Node, float]:
    """Net current (inflow minus outflow) at each node of the network."""
    g = wire_graph(wires, decimals)
    balance: dict[Node, float] = {n: 0.0 for n in g.nodes}
    for u, v, data in g.edges(data=True):
        balance[u] -= data["current"]
        balance[v] += data["current"]
    return balance


def open_ends(
    wires: WireList,
    tol: float = 1e-9,
    decimals: int = 9,
) -> list[Node]:
    """Nodes at which current is not conserved.

    Args:
        wires: Segments to analyse.
        tol: Largest net current (amperes) still treated as balanced.
        decimals: Endpoint rounding, see :func:`wire_graph`.

    Returns:
        Sorted list of offending node keys.
    """
    balance = net_currents(wires, decimals)
    return sorted(n for n, i in balance.items() if abs(i) > tol)


def is_closed(wires: WireList, tol: float = 1e-9) -> bool:
    """True when every node of the network conserves current."""
    ends = open_ends(wires, tol)
    if ends:
        log.debug("wire network has %d open ends", len(ends))
    return not ends
