"""Tests for the transform pipeline as a whole."""

import logging

import pytest
from edgeport.core.config import TransformSettings
from edgeport.core.transform import (
    SourceParseError,
    SourceUnit,
    TransformPipeline,
    build_rules,
    detect_grammar,
    transform_document,
    transform_source,
)
from edgeport.core.transform.base import RewriteRule
from edgeport.core.transform.models import Edit


# =========================================================================
# Sample edge function fixtures
# =========================================================================

CLASSIC_FUNCTION = '''import { serve } from "https://deno.land/std@0.168.0/http/server.ts";
import { createClient } from "https://esm.sh/@supabase/supabase-js@2";
import { corsHeaders } from "../_shared/cors.ts";

serve(async (req) => {
  if (req.method === "OPTIONS") {
    return new Response(null, { headers: corsHeaders });
  }
  const supabase = createClient(
    Deno.env.get("SUPABASE_URL") ?? "",
    Deno.env.get("SUPABASE_ANON_KEY") ?? "",
  );
  const { data } = await supabase.from("todos").select();
  return new Response(JSON.stringify(data), { headers: corsHeaders });
});
'''

MODERN_FUNCTION = '''import Stripe from "npm:stripe@14.14.0";

const stripe = new Stripe(Deno.env.get("STRIPE_SECRET_KEY")!, {
  apiVersion: "2023-10-16",
});

Deno.serve(async (req: Request): Promise<Response> => {
  const body = await req.json();
  return Response.json({ ok: true, body });
});
'''

PLAIN_MODULE = '''export function add(a: number, b: number): number {
  return a + b;
}
'''

BROKEN_SOURCE = '''serve((req) => {
  return new Response("unterminated"
'''


# =========================================================================
# Tests: Grammar selection
# =========================================================================

class TestGrammarDetection:
    def test_typescript(self):
        assert detect_grammar("supabase/functions/hello/index.ts") == "typescript"

    def test_tsx(self):
        assert detect_grammar("component.tsx") == "tsx"

    def test_javascript(self):
        assert detect_grammar("handler.js") == "javascript"
        assert detect_grammar("handler.mjs") == "javascript"

    def test_unknown_extension_defaults_to_javascript(self):
        assert detect_grammar("README") == "javascript"

    def test_case_insensitive(self):
        assert detect_grammar("INDEX.TS") == "typescript"


# =========================================================================
# Tests: Whole-file conversion
# =========================================================================

class TestClassicFunction:
    def test_serve_import_dropped(self):
        out = transform_source("index.ts", CLASSIC_FUNCTION)
        assert "deno.land" not in out
        assert "import { serve }" not in out

    def test_cdn_import_rewritten(self):
        out = transform_source("index.ts", CLASSIC_FUNCTION)
        assert 'import { createClient } from "@supabase/supabase-js";' in out

    def test_relative_import_gets_js_extension(self):
        out = transform_source("index.ts", CLASSIC_FUNCTION)
        assert 'from "../_shared/cors.js"' in out

    def test_env_reads_rewritten(self):
        out = transform_source("index.ts", CLASSIC_FUNCTION)
        assert "Deno.env" not in out
        assert 'process.env["SUPABASE_URL"] ?? ""' in out

    def test_handler_exported(self):
        out = transform_source("index.ts", CLASSIC_FUNCTION)
        assert "async function handler(req) {" in out
        assert out.count("export default handler;") == 1
        assert "serve(" not in out

    def test_outcome_reports_rules(self):
        outcome = transform_document("index.ts", CLASSIC_FUNCTION)
        assert outcome.changed
        assert outcome.exported_handler == "handler"
        assert outcome.applied_rules[:2] == ["specifiers", "env_access"]
        assert "entry_point" in outcome.applied_rules


class TestModernFunction:
    def test_registry_import(self):
        out = transform_source("index.ts", MODERN_FUNCTION)
        assert 'import Stripe from "stripe";' in out

    def test_non_null_env_read_is_parenthesized(self):
        out = transform_source("index.ts", MODERN_FUNCTION)
        assert '(process.env["STRIPE_SECRET_KEY"] ?? "")!' in out

    def test_typed_handler_keeps_annotations(self):
        out = transform_source("index.ts", MODERN_FUNCTION)
        assert "async function handler(req: Request): Promise<Response> {" in out
        assert "export default handler;" in out


class TestUnchangedInput:
    def test_plain_module_untouched(self):
        outcome = transform_document("math.ts", PLAIN_MODULE)
        assert outcome.output_text == PLAIN_MODULE
        assert outcome.applied_rules == []
        assert outcome.exported_handler is None

    def test_empty_file(self):
        assert transform_source("empty.ts", "") == ""


# =========================================================================
# Tests: Idempotence
# =========================================================================

class TestIdempotence:
    @pytest.mark.parametrize("source", [CLASSIC_FUNCTION, MODERN_FUNCTION, PLAIN_MODULE])
    def test_second_run_is_a_no_op(self, source):
        once = transform_source("index.ts", source)
        assert transform_source("index.ts", once) == once

    def test_two_registration_calls(self):
        source = 'serve((req) => new Response("a"));\nserve((req) => new Response("b"));\n'
        once = transform_source("index.ts", source)
        assert once.count("export default") == 1
        assert transform_source("index.ts", once) == once


# =========================================================================
# Tests: Fail-open behaviour
# =========================================================================

class TestFailOpen:
    def test_parse_error_returns_original(self):
        assert transform_source("index.ts", BROKEN_SOURCE) == BROKEN_SOURCE

    def test_parse_error_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING):
            transform_source("index.ts", BROKEN_SOURCE)
        assert "Not transforming index.ts" in caplog.text

    def test_transform_document_raises(self):
        with pytest.raises(SourceParseError):
            transform_document("index.ts", BROKEN_SOURCE)

    def test_rule_exception_returns_original(self, monkeypatch):
        class ExplodingRule(RewriteRule):
            name = "exploding"

            def collect_edits(self, document, state):
                raise RuntimeError("boom")

        monkeypatch.setattr(
            "edgeport.core.transform.pipeline.build_rules",
            lambda settings=None: [ExplodingRule()],
        )
        source = 'const url = Deno.env.get("SUPABASE_URL");\n'
        assert transform_source("index.ts", source) == source

    def test_invalid_output_is_rejected(self):
        class BreakingRule(RewriteRule):
            name = "breaking"

            def collect_edits(self, document, state):
                if document.text_value.endswith("{\n"):
                    return []
                return [Edit(len(document.source), len(document.source), "{\n")]

        pipeline = TransformPipeline(rules=[BreakingRule()])
        with pytest.raises(SourceParseError):
            pipeline.run(SourceUnit("index.ts", PLAIN_MODULE))


# =========================================================================
# Tests: Rule composition
# =========================================================================

class TestRuleOrder:
    def test_default_order(self):
        names = [rule.name for rule in build_rules()]
        assert names == [
            "specifiers",
            "env_access",
            "serve_import",
            "entry_point",
            "type_references",
            "relative_extensions",
            "dynamic_imports",
            "handler_async",
        ]

    def test_optional_rules_appended(self):
        settings = TransformSettings(fix_cors_exports=True, add_supabase_client_import=True)
        names = [rule.name for rule in build_rules(settings)]
        assert names[-2:] == ["cors_export", "supabase_client_import"]

    def test_custom_handler_name(self):
        settings = TransformSettings(handler_name="edgeHandler")
        out = transform_source("index.ts", 'serve((req) => new Response("ok"));\n', settings)
        assert "function edgeHandler(req) {" in out
        assert "export default edgeHandler;" in out
