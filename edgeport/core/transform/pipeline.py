"""Ordered rewrite pipeline.

Rules run in a fixed order over one document:

1. specifiers           import/export sources (npm:, jsr:, deno.land, CDNs)
2. env_access           Deno.env.get / Deno.env.toObject
3. serve_import         drop `serve` from std http imports
4. entry_point          registration call → default-exported handler
5. type_references      Deno.X types → any
6. relative_extensions  ./x.ts → ./x.js
7. dynamic_imports      import("npm:...")
8. handler_async        handler that awaits becomes async

Rules only share the handler emission flag on ``TransformState``; none of
them depends on another's output, but the order is kept stable so output
is reproducible.
"""

import logging
from typing import List, Optional

from ..config.settings import TransformSettings
from .base import RewriteRule
from .document import SourceDocument
from .entry_point import EntryPointRule, HandlerAsyncRule, ServeImportRule
from .env_calls import EnvAccessRule
from .models import SourceParseError, SourceUnit, TransformOutcome, TransformState
from .specifiers import DynamicImportRule, RelativeExtensionRule, SpecifierRule
from .supabase import CorsExportRule, SupabaseClientImportRule
from .type_refs import TypeReferenceRule
from .utils import detect_grammar

logger = logging.getLogger(__name__)


def build_rules(settings: Optional[TransformSettings] = None) -> List[RewriteRule]:
    """Instantiate the rule sequence for the given settings."""
    settings = settings or TransformSettings()
    rules: List[RewriteRule] = [
        SpecifierRule(),
        EnvAccessRule(),
        ServeImportRule(),
        EntryPointRule(),
        TypeReferenceRule(),
        RelativeExtensionRule(),
        DynamicImportRule(),
        HandlerAsyncRule(),
    ]
    if settings.fix_cors_exports:
        rules.append(CorsExportRule())
    if settings.add_supabase_client_import:
        rules.append(SupabaseClientImportRule())
    return rules


class TransformPipeline:
    """Runs an ordered list of rewrite rules over one source unit at a time.

    A pipeline holds no per-file state, so one instance can serve any
    number of files (and threads, each with its own documents).
    """

    def __init__(
        self,
        settings: Optional[TransformSettings] = None,
        rules: Optional[List[RewriteRule]] = None,
    ):
        self.settings = settings or TransformSettings()
        self.rules = rules if rules is not None else build_rules(self.settings)

    def run(self, unit: SourceUnit) -> TransformOutcome:
        """Transform one source unit.

        Raises:
            SourceParseError: If the input, or the rewritten output, does
                not parse cleanly under the grammar selected for the path
        """
        grammar = detect_grammar(unit.file_path)
        document = SourceDocument(unit.source_text, grammar, unit.file_path)
        if document.has_error:
            raise SourceParseError(unit.file_path, grammar)

        state = TransformState(file_path=unit.file_path, handler_name=self.settings.handler_name)
        for rule in self.rules:
            rule.apply(document, state, max_passes=self.settings.max_rule_passes)

        if state.applied_rules and document.has_error:
            raise SourceParseError(unit.file_path, grammar, stage="output")

        return TransformOutcome(
            file_path=unit.file_path,
            grammar=grammar,
            source_text=unit.source_text,
            output_text=document.text_value,
            applied_rules=list(state.applied_rules),
            exported_handler=state.exported_name,
        )
