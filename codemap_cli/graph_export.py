"""Graph export helpers for DOT and simple standalone HTML outputs."""

from __future__ import annotations

import html
from pathlib import Path
from typing import Any, Dict, Iterator, List, Tuple


def manifest_graph(manifest: Dict[str, Any]) -> Dict[str, Any]:
    """Collect file and module nodes plus file -> dependency edges."""
    nodes: Dict[str, Dict[str, str]] = {}
    edges: List[Dict[str, str]] = []

    for path, entry in _file_entries(manifest):
        language = (entry.get("fileDetails") or {}).get("language", "unknown")
        nodes[path] = {"id": path, "kind": "file", "title": language}
        for dep in entry.get("dependencies") or []:
            target = str(dep.get("name", ""))
            nodes.setdefault(target, {"id": target, "kind": dep.get("type", "local"), "title": dep.get("path", "")})
            edges.append({"src": path, "dst": target, "edge_type": dep.get("type", "local")})

    return {"nodes": nodes, "edges": edges}


def _file_entries(node: Dict[str, Any], prefix: str = "") -> Iterator[Tuple[str, Dict[str, Any]]]:
    """Yield ``(path, entry)`` pairs; the path is the folder chain below the root plus the name."""
    for entry in node.get("files") or []:
        yield f"{prefix}{entry.get('name', '')}", entry
    for child in node.get("subdirectories") or []:
        yield from _file_entries(child, f"{prefix}{child.get('directory', '')}/")


def export_dot(manifest: Dict[str, Any], output_file: Path, focus: str = "") -> None:
    graph = _focused_subgraph(manifest_graph(manifest), focus)

    lines = ["digraph CodebaseMap {"]
    lines.append("  rankdir=LR;")

    for node in graph["nodes"]:
        shape = "box" if node["kind"] == "file" else "ellipse"
        lines.append(f'  "{_esc(node["id"])}" [shape={shape}];')

    for edge in graph["edges"]:
        lines.append(
            f'  "{_esc(edge["src"])}" -> "{_esc(edge["dst"])}" [label="{_esc(edge["edge_type"])}"];'
        )

    lines.append("}")
    output_file.write_text("\n".join(lines), encoding="utf-8")


def export_html(manifest: Dict[str, Any], output_file: Path, focus: str = "") -> None:
    graph = _focused_subgraph(manifest_graph(manifest), focus)
    title = html.escape(str(manifest.get("directory", "Codebase map")))
    output_file.write_text(_html_page(graph, title), encoding="utf-8")


def _html_page(graph: Dict[str, List], title: str) -> str:
    """One table per file listing its outgoing edges; dependency modules get no section of their own."""
    outgoing: Dict[str, List[Dict[str, str]]] = {}
    for edge in graph["edges"]:
        outgoing.setdefault(edge["src"], []).append(edge)

    sections = []
    for node in graph["nodes"]:
        if node["kind"] != "file":
            continue
        rows = "".join(
            f"<tr><td>{html.escape(e['dst'])}</td><td class=\"{html.escape(e['edge_type'])}\">"
            f"{html.escape(e['edge_type'])}</td></tr>"
            for e in outgoing.get(node["id"], [])
        ) or '<tr><td colspan="2"><em>no dependencies</em></td></tr>'
        sections.append(
            f"<section><h2>{html.escape(node['id'])} <small>{html.escape(node['title'])}</small></h2>"
            f"<table>{rows}</table></section>"
        )

    return "\n".join(
        [
            "<!doctype html>",
            "<html>",
            '<head><meta charset="utf-8" />',
            f"<title>{title} dependencies</title>",
            "<style>body { font-family: monospace; margin: 20px; } td { padding: 2px 12px; }"
            " .npm { color: #b5651d; } .core { color: #555; } .local { color: #2a7ae2; }</style>",
            "</head>",
            "<body>",
            f"<h1>{title} dependencies</h1>",
            f"<p>{len(graph['nodes'])} nodes, {len(graph['edges'])} edges</p>",
            *sections,
            "</body>",
            "</html>",
            "",
        ]
    )


def _focused_subgraph(graph: Dict[str, Any], focus: str) -> Dict[str, List]:
    nodes: Dict[str, Dict[str, str]] = graph["nodes"]
    edges: List[Dict[str, str]] = graph["edges"]

    if focus:
        focus_ids = {node_id for node_id in nodes if focus in node_id}
        if focus_ids:
            edges = [e for e in edges if e["src"] in focus_ids or e["dst"] in focus_ids]
            keep = set(focus_ids)
            for e in edges:
                keep.update((e["src"], e["dst"]))
            return {"nodes": [nodes[n] for n in sorted(keep)], "edges": edges}

    return {"nodes": list(nodes.values()), "edges": edges}


def _esc(text: str) -> str:
    return text.replace('"', '\\"')
