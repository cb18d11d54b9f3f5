"""Editable source document backed by a tree-sitter tree.

tree-sitter trees are read-only, so a document keeps the source bytes and
the tree that was parsed from them. Rules describe their changes as byte
range edits; ``apply`` splices them in and re-parses, which is how the
pipeline "mutates" the tree between rules.
"""

import logging
from typing import Iterable, List, Optional

import tree_sitter

from .models import Edit
from .utils import get_language

logger = logging.getLogger(__name__)


class SourceDocument:
    """Source bytes plus the tree parsed from them under one grammar."""

    def __init__(self, source_text: str, grammar: str, file_path: str = ""):
        self.grammar = grammar
        self.file_path = file_path
        self._parser = tree_sitter.Parser(get_language(grammar))
        self.source = source_text.encode("utf-8")
        self.tree = self._parser.parse(self.source)

    @property
    def root(self) -> tree_sitter.Node:
        return self.tree.root_node

    @property
    def has_error(self) -> bool:
        return self.tree.root_node.has_error

    @property
    def text_value(self) -> str:
        return self.source.decode("utf-8")

    def text(self, node: Optional[tree_sitter.Node]) -> str:
        """Return the source text covered by ``node`` (empty for ``None``)."""
        if node is None:
            return ""
        return self.source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")

    def statement_span(self, node: tree_sitter.Node) -> Edit:
        """Build a deletion edit for a whole statement and its line break."""
        end = node.end_byte
        if self.source[end:end + 2] == b"\r\n":
            end += 2
        elif self.source[end:end + 1] == b"\n":
            end += 1
        return Edit(node.start_byte, end, "")

    def apply(self, edits: Iterable[Edit]) -> List[Edit]:
        """Splice non-overlapping edits into the source and re-parse.

        Edits are accepted outermost-first in document order; an edit that
        overlaps one already accepted is returned unapplied so the caller
        can retry it against the new tree.

        Returns:
            The edits that were skipped because of overlap
        """
        ordered = sorted(edits, key=lambda e: (e.start_byte, -e.end_byte))
        accepted: List[Edit] = []
        deferred: List[Edit] = []
        for edit in ordered:
            if any(edit.overlaps(a) for a in accepted):
                deferred.append(edit)
            else:
                accepted.append(edit)

        if not accepted:
            return deferred

        buf = self.source
        for edit in sorted(accepted, key=lambda e: e.start_byte, reverse=True):
            buf = buf[:edit.start_byte] + edit.replacement.encode("utf-8") + buf[edit.end_byte:]

        self.source = buf
        self.tree = self._parser.parse(self.source)
        logger.debug(
            "Applied %d edit(s) to %s (%d deferred)",
            len(accepted), self.file_path or "<source>", len(deferred),
        )
        return deferred
