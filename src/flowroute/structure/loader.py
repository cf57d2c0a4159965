"""
Loading of workflow documents.

Accepts the editor's canvas export (React Flow nodes carrying a ``data``
object with ``label``, ``params`` and ``outputFields``) as well as flat
documents already shaped like the flowroute models, from a mapping or from a
JSON or YAML file.
"""

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from flowroute.core.models import Edge, Node, Workflow

_EDGE_KEYS = frozenset(
    {"source", "target", "sourceHandle", "targetHandle", "source_handle", "target_handle"}
)


def _node_from_document(raw: Mapping[str, Any]) -> Node:
    data = raw.get("data")
    if not isinstance(data, Mapping):
        return Node.model_validate(raw)

    params = dict(data.get("params") or {})
    # Older canvases keep condition paths directly on the node data
    if "paths" in data and "paths" not in params:
        params["paths"] = data["paths"]

    return Node(
        id=raw["id"],
        type=raw.get("type") or data.get("type") or "",
        display_name=params.get("nodeName") or None,
        label=data.get("label") or "",
        params=params,
        output_fields=tuple(data.get("outputFields") or ()),
    )


def _edge_from_document(raw: Mapping[str, Any]) -> Edge:
    return Edge.model_validate(
        {key: value for key, value in raw.items() if key in _EDGE_KEYS}
    )


def workflow_from_dict(document: Mapping[str, Any]) -> Workflow:
    """
    Build a Workflow from a parsed document.

    Params:
        document: Mapping with ``nodes`` and ``edges`` lists, optionally
            ``id`` and ``name``

    Returns:
        The workflow model
    """
    return Workflow(
        id=str(document.get("id") or ""),
        name=str(document.get("name") or ""),
        nodes=tuple(_node_from_document(node) for node in document.get("nodes") or ()),
        edges=tuple(_edge_from_document(edge) for edge in document.get("edges") or ()),
    )


def load_workflow(path: str | Path) -> Workflow:
    """
    Load a workflow from a JSON or YAML file.

    Params:
        path: File path; ``.yaml``/``.yml`` files are read as YAML, anything
            else as JSON

    Returns:
        The workflow model
    """
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".yaml", ".yml"):
        import yaml

        document = yaml.safe_load(text)
    else:
        document = json.loads(text)
    return workflow_from_dict(document or {})
