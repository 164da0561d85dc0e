"""
Graph inspection helpers.
Print and summarize the structure of a backward graph.
"""

import numpy as np
from typing import Dict, List
from collections import Counter

from .edge import Edge
from .graph import Graph
from .variable import Variable


def _collect_nodes(roots) -> List:
    """
    Nodes reachable from ``roots`` in discovery order.

    ``roots`` may be a Graph, a Node, an Edge, a Variable, or a list of those.
    A Graph contributes its own nodes plus whatever they reach.
    """
    if isinstance(roots, (Graph, list, tuple)):
        items = list(roots)
    else:
        items = [roots]

    start = []
    for item in items:
        if isinstance(item, Variable):
            edge = item.gradient_edge()
            if edge is not None:
                start.append(edge.function)
        elif isinstance(item, Edge):
            start.append(item.function)
        elif item is not None:
            start.append(item)

    seen = set()
    order = []
    stack = list(reversed(start))
    while stack:
        node = stack.pop()
        if node in seen:
            continue
        seen.add(node)
        order.append(node)
        for edge in reversed(node.next_edges):
            if edge is not None and edge.function not in seen:
                stack.append(edge.function)
    return order


def get_graph_stats(roots) -> Dict:
    """
    Structural statistics of the graph reachable from ``roots`` (no printing).

    Fan-out of a node is its number of defined output edges; fan-in is the
    number of edges arriving at it.

    Returns:
        dict with nodes, edges, leaves, max/avg fan-in, max/avg fan-out, operations
    """
    nodes = _collect_nodes(roots)
    if not nodes:
        return {
            'nodes': 0,
            'edges': 0,
            'leaves': 0,
            'max_fan_in': 0,
            'avg_fan_in': 0.0,
            'max_fan_out': 0,
            'avg_fan_out': 0.0,
            'operations': {}
        }

    fan_in = Counter()
    fan_outs = []
    for node in nodes:
        targets = [e.function for e in node.next_edges if e is not None]
        fan_outs.append(len(targets))
        fan_in.update(targets)
    fan_ins = [fan_in[node] for node in nodes]

    op_counter = Counter(node.name() for node in nodes)

    return {
        'nodes': len(nodes),
        'edges': sum(fan_outs),
        'leaves': sum(1 for node in nodes if node.is_leaf),
        'max_fan_in': max(fan_ins),
        'avg_fan_in': float(np.mean(fan_ins)),
        'max_fan_out': max(fan_outs),
        'avg_fan_out': float(np.mean(fan_outs)),
        'operations': dict(op_counter)
    }


def print_graph_summary(roots) -> Dict:
    """Print a summary of the graph reachable from ``roots`` and return its stats."""
    stats = get_graph_stats(roots)
    if stats['nodes'] == 0:
        print("Empty backward graph")
        return stats

    print("\n" + "=" * 70)
    print("BACKWARD GRAPH SUMMARY")
    print("=" * 70)
    print(f"Total nodes:        {stats['nodes']:,}")
    print(f"Total edges:        {stats['edges']:,}")
    print(f"Leaves:             {stats['leaves']:,}")
    print(f"Max fan-in:         {stats['max_fan_in']}")
    print(f"Avg fan-in:         {stats['avg_fan_in']:.2f}")
    print(f"Max fan-out:        {stats['max_fan_out']}")
    print(f"Avg fan-out:        {stats['avg_fan_out']:.2f}")
    print()
    print("Node breakdown:")
    for op, count in Counter(stats['operations']).most_common(10):
        pct = 100.0 * count / stats['nodes']
        print(f"  {op:16s}: {count:6,} ({pct:5.1f}%)")
    print("=" * 70 + "\n")
    return stats


def print_computation_graph(roots, max_nodes: int = 20) -> None:
    """Print one line per node: id, type and where its gradients go."""
    nodes = _collect_nodes(roots)
    print("\n" + "=" * 70)
    print("BACKWARD GRAPH STRUCTURE")
    print("=" * 70)

    if not nodes:
        print("Empty graph")
        return

    for node in nodes[:max_nodes]:
        if node.is_leaf:
            print(f"Node {node.id:4d}: {node.name():16s} [leaf]")
            continue
        targets = ", ".join(
            f"Node{e.function.id}[{e.input_nr}]" if e is not None else "-"
            for e in node.next_edges
        )
        print(f"Node {node.id:4d}: {node.name():16s} -> [{targets}]")

    if len(nodes) > max_nodes:
        print(f"... ({len(nodes) - max_nodes} more nodes)")
    print("=" * 70 + "\n")


def analyze_graph_complexity(roots) -> str:
    """Short text report on the size and shape of a backward graph."""
    stats = get_graph_stats(roots)

    if stats['nodes'] == 0:
        return "Empty backward graph"

    report = []
    report.append("Graph Complexity Analysis:")
    report.append(f"  Total nodes: {stats['nodes']:,}")
    report.append(f"  Total connections: {stats['edges']:,}")
    report.append(f"  Average branching: {stats['avg_fan_out']:.2f}")

    if stats['nodes'] < 1000:
        complexity = "Low"
    elif stats['nodes'] < 10000:
        complexity = "Medium"
    else:
        complexity = "High"
    report.append(f"  Complexity level: {complexity}")

    top_ops = sorted(stats['operations'].items(), key=lambda x: x[1], reverse=True)[:3]
    report.append("  Top nodes:")
    for op, count in top_ops:
        pct = 100.0 * count / stats['nodes']
        report.append(f"    - {op}: {pct:.1f}%")

    return "\n".join(report)
