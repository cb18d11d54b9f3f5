"""Runtime namespace type scrubbing.

``Deno.ServeHandler``, ``Deno.Conn`` and friends do not exist outside the
source runtime; any type reference qualified by the runtime namespace
becomes ``any``. Only the typescript grammars produce these nodes.
"""

import logging
from typing import List

from ..constants import RUNTIME_NAMESPACE
from .base import RewriteRule, is_identifier
from .document import SourceDocument
from .models import Edit, TransformState
from .utils import walk

logger = logging.getLogger(__name__)

UNIVERSAL_TYPE = "any"


class TypeReferenceRule(RewriteRule):
    """Replace ``Deno.X`` / ``Deno.X<T>`` in type position with ``any``.

    Matches on the qualified name's left-hand identifier only.
    """

    name = "type_references"

    def collect_edits(self, document: SourceDocument, state: TransformState) -> List[Edit]:
        edits: List[Edit] = []
        for node in walk(document.root):
            if node.type != "nested_type_identifier":
                continue
            if not is_identifier(document, node.child_by_field_name("module"), RUNTIME_NAMESPACE):
                continue
            target = node
            parent = node.parent
            if parent is not None and parent.type == "generic_type" and parent.child_by_field_name("name") == node:
                target = parent
            edits.append(Edit(target.start_byte, target.end_byte, UNIVERSAL_TYPE))
        return edits
