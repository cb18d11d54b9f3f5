"""Transform engine utilities.

Grammar detection, parser registry, and tree-walking helpers.
"""

import os
from typing import Dict, Iterator, List, Optional

import tree_sitter

# Extension → grammar mapping. Anything not listed parses as javascript.
SCRIPT_EXTENSIONS: Dict[str, str] = {
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
}

DEFAULT_GRAMMAR = "javascript"

# Nodes that open a new function scope; suspension points inside them
# belong to the nested function, not the enclosing one.
FUNCTION_NODE_TYPES = frozenset({
    "function_declaration",
    "function_expression",
    "function",
    "generator_function",
    "generator_function_declaration",
    "arrow_function",
    "method_definition",
})

# Language registry, populated lazily
_language_registry: Dict[str, tree_sitter.Language] = {}


def detect_grammar(file_path: str) -> str:
    """Select the grammar variant for a source file.

    Type-annotated files get the typescript (or tsx) grammar, everything
    else the plain javascript grammar.

    Args:
        file_path: Path to the source file

    Returns:
        Grammar identifier: "typescript", "tsx" or "javascript"
    """
    _, ext = os.path.splitext(file_path)
    return SCRIPT_EXTENSIONS.get(ext.lower(), DEFAULT_GRAMMAR)


def is_script_file(file_path: str) -> bool:
    """Check if a file is a script the converter should transform."""
    _, ext = os.path.splitext(file_path)
    return ext.lower() in SCRIPT_EXTENSIONS


def get_language(grammar: str) -> tree_sitter.Language:
    """Get the tree-sitter Language for a grammar identifier.

    Raises:
        ValueError: If the grammar is not supported
    """
    if grammar not in _language_registry:
        if grammar == "typescript":
            import tree_sitter_typescript
            _language_registry["typescript"] = tree_sitter.Language(
                tree_sitter_typescript.language_typescript()
            )
        elif grammar == "tsx":
            import tree_sitter_typescript
            _language_registry["tsx"] = tree_sitter.Language(
                tree_sitter_typescript.language_tsx()
            )
        elif grammar == "javascript":
            import tree_sitter_javascript
            _language_registry["javascript"] = tree_sitter.Language(
                tree_sitter_javascript.language()
            )
        else:
            raise ValueError(
                f"Unsupported grammar: {grammar}. "
                f"Supported: {sorted(set(SCRIPT_EXTENSIONS.values()))}"
            )

    return _language_registry[grammar]


def walk(node: tree_sitter.Node, skip_types: frozenset = frozenset()) -> Iterator[tree_sitter.Node]:
    """Yield ``node`` and its descendants in document order.

    Children of nodes whose type is in ``skip_types`` are not visited
    (the node itself still is, unless it is the root).
    """
    stack: List[tree_sitter.Node] = [node]
    while stack:
        current = stack.pop()
        yield current
        if current is not node and current.type in skip_types:
            continue
        stack.extend(reversed(current.children))


def named_args(arguments: Optional[tree_sitter.Node]) -> List[tree_sitter.Node]:
    """Return the argument expressions of an ``arguments`` node, minus comments."""
    if arguments is None:
        return []
    return [c for c in arguments.named_children if c.type != "comment"]


def has_keyword(node: tree_sitter.Node, keyword: str) -> bool:
    """Check for an anonymous keyword token (e.g. ``async``) among direct children."""
    return any(not c.is_named and c.type == keyword for c in node.children)


def contains_suspension_point(node: Optional[tree_sitter.Node]) -> bool:
    """Check whether a function body awaits, ignoring nested functions.

    Both ``await expr`` and ``for await (...)`` count.
    """
    if node is None or node.type in FUNCTION_NODE_TYPES:
        return False
    for child in walk(node, skip_types=FUNCTION_NODE_TYPES):
        if child is not node and child.type in FUNCTION_NODE_TYPES:
            continue
        if child.type == "await_expression":
            return True
        if child.type == "for_in_statement" and has_keyword(child, "await"):
            return True
    return False
