"""Base interface for rewrite rules.

Defines the Strategy pattern base class that all rewrite rules implement.
The shared pass loop lives here; match conditions and replacements are
delegated to subclasses.
"""

import logging
from abc import ABC, abstractmethod
from typing import List

import tree_sitter

from .document import SourceDocument
from .models import Edit, TransformState

logger = logging.getLogger(__name__)

DEFAULT_MAX_PASSES = 8


class RewriteRule(ABC):
    """Abstract base for syntax-tree rewrite rules.

    Subclasses implement:
    - name: short identifier used in logs and in ``TransformState.applied_rules``
    - collect_edits(): walks the current tree and returns byte-range edits

    A rule must only match source-runtime idioms, never its own output,
    so running it again on rewritten text yields no edits.
    """

    name: str = "rule"

    @abstractmethod
    def collect_edits(self, document: SourceDocument, state: TransformState) -> List[Edit]:
        """Find matches in the current tree and describe their replacements.

        Args:
            document: Document holding the current source and tree
            state: Per-file pipeline state

        Returns:
            List of edits against ``document.source``
        """
        ...

    def apply(
        self,
        document: SourceDocument,
        state: TransformState,
        max_passes: int = DEFAULT_MAX_PASSES,
    ) -> bool:
        """Run the rule until it stops producing edits.

        Nested matches are deferred by ``SourceDocument.apply`` and picked
        up on the next pass against the re-parsed tree.

        Returns:
            True if the document changed
        """
        changed = False
        for _ in range(max_passes):
            edits = self.collect_edits(document, state)
            if not edits:
                break
            document.apply(edits)
            changed = True
        else:
            logger.warning(
                f"Rule {self.name} still matching after {max_passes} passes on {state.file_path}"
            )

        if changed:
            state.applied_rules.append(self.name)
            logger.debug(f"Rule {self.name} rewrote {state.file_path}")
        return changed


# =========================================================================
# Node helpers shared by the rule modules
# =========================================================================


def string_value(document: SourceDocument, node: tree_sitter.Node) -> str:
    """Return the contents of a string literal node without its quotes."""
    raw = document.text(node)
    if len(raw) >= 2 and raw[0] in "'\"`" and raw[-1] == raw[0]:
        return raw[1:-1]
    return raw


def quote_like(document: SourceDocument, node: tree_sitter.Node, value: str) -> str:
    """Render ``value`` as a string literal using the quote style of ``node``."""
    raw = document.text(node)
    quote = raw[0] if raw and raw[0] in "'\"" else "'"
    return f"{quote}{value}{quote}"


def is_identifier(document: SourceDocument, node: tree_sitter.Node, name: str) -> bool:
    return node is not None and node.type == "identifier" and document.text(node) == name


def member_parts(document: SourceDocument, node: tree_sitter.Node):
    """Split a non-computed member expression into (object node, property name).

    Returns ``(None, None)`` for anything else, including ``a?.b`` chains.
    """
    if node is None or node.type != "member_expression":
        return None, None
    if any(c.type == "optional_chain" for c in node.children):
        return None, None
    prop = node.child_by_field_name("property")
    if prop is None or prop.type != "property_identifier":
        return None, None
    return node.child_by_field_name("object"), document.text(prop)
