"""Runtime environment access rewriting.

    Deno.env.get(key)    →  process.env[key] ?? ""
    Deno.env.toObject()  →  process.env

The match is structural: a three-level member chain with exact names.
A local object that happens to be called ``Deno`` is rewritten too.
"""

import logging
from typing import List

import tree_sitter

from ..constants import RUNTIME_NAMESPACE
from .base import RewriteRule, is_identifier, member_parts
from .document import SourceDocument
from .models import Edit, TransformState
from .utils import named_args, walk

logger = logging.getLogger(__name__)

TARGET_ENV = "process.env"

# Parents in which `a ?? ""` can stand without parentheses
_UNPARENTHESIZED_PARENTS = frozenset({
    "variable_declarator",
    "arguments",
    "assignment_expression",
    "augmented_assignment_expression",
    "pair",
    "return_statement",
    "expression_statement",
    "parenthesized_expression",
    "array",
    "template_substitution",
    "spread_element",
    "subscript_expression",
    "public_field_definition",
    "assignment_pattern",
    "required_parameter",
    "optional_parameter",
})


def _env_method(document: SourceDocument, call: tree_sitter.Node):
    """Return ``get``/``toObject`` if ``call`` is ``Deno.env.<method>(...)``."""
    obj, method = member_parts(document, call.child_by_field_name("function"))
    if method not in ("get", "toObject"):
        return None
    root, env = member_parts(document, obj)
    if env != "env" or not is_identifier(document, root, RUNTIME_NAMESPACE):
        return None
    return method


def _needs_parentheses(call: tree_sitter.Node) -> bool:
    parent = call.parent
    if parent is None:
        return False
    if parent.type == "subscript_expression":
        # Safe as the index, not as the subscripted object
        return parent.child_by_field_name("object") == call
    if parent.type == "binary_expression":
        operator = parent.child_by_field_name("operator")
        return operator is None or operator.type != "??"
    if parent.type in ("assignment_expression", "augmented_assignment_expression"):
        return parent.child_by_field_name("right") != call
    return parent.type not in _UNPARENTHESIZED_PARENTS


class EnvAccessRule(RewriteRule):
    """Replace source-runtime environment reads with target-runtime ones.

    ``get`` keeps whatever key expression was passed; a call without an
    argument reads the empty-string key.
    """

    name = "env_access"

    def collect_edits(self, document: SourceDocument, state: TransformState) -> List[Edit]:
        edits: List[Edit] = []
        for node in walk(document.root):
            if node.type != "call_expression":
                continue
            method = _env_method(document, node)
            if method is None:
                continue

            if method == "toObject":
                replacement = TARGET_ENV
            else:
                args = named_args(node.child_by_field_name("arguments"))
                key = document.text(args[0]) if args else '""'
                replacement = f'{TARGET_ENV}[{key}] ?? ""'
                if _needs_parentheses(node):
                    replacement = f"({replacement})"

            edits.append(Edit(node.start_byte, node.end_byte, replacement))
        return edits
