"""
Node output schema registry.

Static mapping from a node's declared type to the named output fields it
produces. The registry is a pure lookup table: it holds no per-run state and
is consulted at graph-build time for reference validation and for listing the
variables a node may use.
"""

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

from attrs import frozen

from flowroute.core.models import Node

if TYPE_CHECKING:
    from flowroute.structure.graph import ExecutionGraph


@frozen
class OutputField:
    name: str
    kind: str = "Text"
    description: str = ""


FieldFactory = Callable[[Node], Iterable[OutputField]]

AI_PROVIDER_TYPES = (
    "openai",
    "anthropic",
    "gemini",
    "cohere",
    "claude",
    "perplexity",
    "xai",
    "aws",
    "azure",
)

# Input node subtype -> field carrying the provided value
INPUT_SUBTYPE_FIELDS = {
    "text": "text",
    "image": "image",
    "audio": "audio",
    "file": "file",
    "json": "json",
}

GENERIC_FIELDS = (
    OutputField("output", "Text", "Primary output from this node"),
    OutputField("result", "Any", "Generic result value"),
    OutputField("data", "Any", "Node data output"),
)


def _input_fields(node: Node) -> list[OutputField]:
    subtype = str(node.params.get("type") or node.params.get("inputType") or "Text")
    field_name = INPUT_SUBTYPE_FIELDS.get(subtype.lower(), "text")
    kind = "Object" if field_name == "json" else "Text"
    return [
        OutputField(field_name, kind, "The input value provided by the user"),
        OutputField("output", kind, "Primary output of the input node"),
        OutputField("value", kind, "Generic value accessor"),
    ]


def _builtin_entries() -> list[tuple[tuple[str, ...], list[OutputField] | FieldFactory]]:
    return [
        (("input",), _input_fields),
        (
            AI_PROVIDER_TYPES,
            [
                OutputField("response", "Text", "The AI model's response text"),
                OutputField("output", "Text", "Primary output from the AI model"),
                OutputField("content", "Text", "Response content"),
                OutputField("model", "Text", "The AI model used"),
                OutputField("prompt_tokens", "Number", "Number of tokens in the prompt"),
                OutputField("completion_tokens", "Number", "Number of tokens in the response"),
            ],
        ),
        (
            ("transform", "text-processor"),
            [
                OutputField("output", "Text", "Transformed text output"),
                OutputField("processed_text", "Text", "The processed text result"),
                OutputField("metadata", "Object", "Processing metadata"),
            ],
        ),
        (
            ("kb-search", "knowledge-base", "kb-reader"),
            [
                OutputField("results", "Array", "Search results from knowledge base"),
                OutputField("documents", "Array", "Retrieved documents"),
                OutputField("metadata", "Object", "Search metadata"),
                OutputField("summary", "Text", "Summary of search results"),
            ],
        ),
        (
            ("api-loader", "http-request"),
            [
                OutputField("response_data", "Object", "API response data"),
                OutputField("status_code", "Number", "HTTP status code"),
                OutputField("headers", "Object", "Response headers"),
                OutputField("error", "Text", "Error message if any"),
            ],
        ),
        (
            ("json-handler",),
            [
                OutputField("json_object", "Object", "Parsed JSON object"),
                OutputField("output", "Object", "JSON data output"),
                OutputField("error", "Text", "Parsing error if any"),
            ],
        ),
        (
            ("condition",),
            [
                OutputField("matched", "Boolean", "Whether a non-else path matched"),
                OutputField("pathId", "Text", "Id of the selected path"),
                OutputField("pathName", "Text", "Name of the selected path"),
                OutputField("condition_met", "Boolean", "Alias of matched"),
            ],
        ),
        (
            ("output",),
            [
                OutputField("output", "Text", "Final output value"),
                OutputField("value", "Text", "Display value"),
            ],
        ),
        (
            ("time", "delay"),
            [
                OutputField("output", "Text", "Time-related output"),
                OutputField("current_time", "Text", "Current time"),
                OutputField("timestamp", "Number", "Unix timestamp"),
                OutputField("status", "Text", "Status"),
            ],
        ),
        (
            ("merge",),
            [
                OutputField("output", "Any", "Merged output"),
                OutputField("merged_data", "Any", "Merged data"),
                OutputField("combined_output", "Text", "Combined output"),
            ],
        ),
    ]


class OutputSchemaRegistry:
    """Registry of output fields per node type.

    Lookup order for a node:
    - fields the node explicitly declares in ``output_fields``
    - the entry registered for its type (case-insensitive)
    - the generic fallback (``output``, ``result``, ``data``)
    """

    def __init__(self, include_builtins: bool = True):
        self._entries: dict[str, list[OutputField] | FieldFactory] = {}
        if include_builtins:
            for node_types, fields in _builtin_entries():
                self.register(node_types, fields)

    def register(
        self,
        node_types: str | Iterable[str],
        fields: Iterable[OutputField | str] | FieldFactory,
    ) -> None:
        """
        Register the output fields produced by one or more node types.

        Later registrations replace earlier ones, so integration adapters can
        override the built-in table.

        Params:
            node_types: Node type or types the fields apply to
            fields: Output fields (names or OutputField), or a factory
                computing them from the node's params
        """
        if isinstance(node_types, str):
            node_types = [node_types]
        if callable(fields):
            entry = fields
        else:
            entry = [f if isinstance(f, OutputField) else OutputField(f) for f in fields]
        for node_type in node_types:
            self._entries[node_type.lower()] = entry

    def is_registered(self, node_type: str) -> bool:
        return node_type.lower() in self._entries

    def fields_for(self, node: Node) -> tuple[OutputField, ...]:
        """
        Return the output fields a node produces.

        Params:
            node: Node to describe

        Returns:
            Tuple of OutputField in declaration order
        """
        if node.output_fields:
            return tuple(OutputField(name, "Any") for name in node.output_fields)
        entry = self._entries.get(node.type.lower())
        if entry is None:
            return GENERIC_FIELDS
        if callable(entry):
            return tuple(entry(node))
        return tuple(entry)

    def field_names(self, node: Node) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields_for(node))

    def declares(self, node: Node, field_path: str) -> bool:
        """Check whether the top-level field of a dotted path is declared for a node."""
        top_level = field_path.split(".", 1)[0]
        return top_level in self.field_names(node)


def available_variables(
    graph: "ExecutionGraph", node_id: str, registry: OutputSchemaRegistry
) -> list[str]:
    """
    List the ``namespace.field`` references a node may use.

    Derived purely from the execution graph: only fields of nodes transitively
    upstream of ``node_id`` are offered, nearest nodes first.

    Params:
        graph: Execution graph of the workflow
        node_id: Node whose references are being authored
        registry: Output schema registry

    Returns:
        Reference strings without braces, e.g. ``["input_1.text", ...]``
    """
    references = []
    for ancestor_id in graph.ancestors(node_id):
        node = graph.node(ancestor_id)
        for field in registry.fields_for(node):
            references.append(f"{node.namespace}.{field.name}")
    return references
