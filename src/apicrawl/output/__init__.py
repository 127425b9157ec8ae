from .builder import (
    TREE_NODE_FIELD_ORDER,
    build_flat,
    build_grouped,
    build_tree,
    render,
    serialize,
)
from .writer import format_endpoints, format_summary, generate_text_report, save_results

__all__ = [
    "TREE_NODE_FIELD_ORDER",
    "build_flat",
    "build_grouped",
    "build_tree",
    "format_endpoints",
    "format_summary",
    "generate_text_report",
    "render",
    "save_results",
    "serialize",
]
