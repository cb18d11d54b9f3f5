"""Optional clean-up rules for Supabase-flavoured edge functions.

Not part of the default pipeline; enabled through ``TransformSettings``.
"""

import logging
from typing import List

from .base import RewriteRule, is_identifier, string_value
from .document import SourceDocument
from .models import Edit, TransformState
from .utils import walk

logger = logging.getLogger(__name__)

SUPABASE_CLIENT_PACKAGE = "@supabase/supabase-js"
CORS_HEADERS_NAME = "corsHeaders"


class CorsExportRule(RewriteRule):
    """Export a top-level ``corsHeaders`` declaration so routes can share it."""

    name = "cors_export"

    def collect_edits(self, document: SourceDocument, state: TransformState) -> List[Edit]:
        edits: List[Edit] = []
        for statement in document.root.children:
            if statement.type not in ("lexical_declaration", "variable_declaration"):
                continue
            for declarator in statement.named_children:
                if declarator.type != "variable_declarator":
                    continue
                if is_identifier(document, declarator.child_by_field_name("name"), CORS_HEADERS_NAME):
                    edits.append(Edit(statement.start_byte, statement.start_byte, "export "))
                    break
        return edits


class SupabaseClientImportRule(RewriteRule):
    """Add the ``createClient`` import when the call is used without one."""

    name = "supabase_client_import"

    def collect_edits(self, document: SourceDocument, state: TransformState) -> List[Edit]:
        for statement in document.root.children:
            if statement.type != "import_statement":
                continue
            source = statement.child_by_field_name("source")
            if source is not None and SUPABASE_CLIENT_PACKAGE in string_value(document, source):
                return []

        calls_client = any(
            node.type == "call_expression"
            and is_identifier(document, node.child_by_field_name("function"), "createClient")
            for node in walk(document.root)
        )
        if not calls_client:
            return []

        logger.debug(f"Adding createClient import to {state.file_path}")
        return [Edit(0, 0, f"import {{ createClient }} from '{SUPABASE_CLIENT_PACKAGE}';\n")]
