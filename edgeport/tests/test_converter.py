"""End-to-end tests for project conversion."""

import json

import pytest
from edgeport.core.config import EdgeportSettings
from edgeport.core.conversion import ProjectConverter, fix_shared_imports


HELLO_SOURCE = '''import { serve } from "https://deno.land/std@0.168.0/http/server.ts";
import { corsHeaders } from "../_shared/cors.ts";

serve((req) => new Response(Deno.env.get("GREETING"), { headers: corsHeaders }));
'''

PAYMENTS_SOURCE = '''import Stripe from "npm:stripe@14";

const stripe = new Stripe(Deno.env.get("STRIPE_SECRET_KEY") ?? "");

Deno.serve(async (req) => {
  const event = await req.json();
  return Response.json({ received: event.type });
});
'''

BROKEN_SOURCE = '''serve((req) => {
  return new Response(
'''

CORS_SOURCE = '''export const corsHeaders = {
  "Access-Control-Allow-Origin": "*",
};
'''


def _write(path, content):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


@pytest.fixture
def project(tmp_path):
    root = tmp_path / "app"
    functions = root / "supabase" / "functions"
    _write(functions / "hello" / "index.ts", HELLO_SOURCE)
    _write(functions / "hello" / "deno.json", "{}\n")
    _write(functions / "payments" / "index.ts", PAYMENTS_SOURCE)
    _write(functions / "broken" / "index.ts", BROKEN_SOURCE)
    _write(functions / "_shared" / "cors.ts", CORS_SOURCE)
    return root


@pytest.fixture
def output(tmp_path):
    return tmp_path / "out"


class TestFixSharedImports:
    def test_double_quotes(self):
        assert fix_shared_imports('import { a } from "../_shared/a.js";') == (
            'import { a } from "../../shared/a.js";'
        )

    def test_single_quotes_and_custom_path(self):
        assert fix_shared_imports("import b from '../_shared/b.js';", "../lib") == "import b from '../lib/b.js';"

    def test_other_imports_untouched(self):
        text = 'import x from "./_shared/x.js";'
        assert fix_shared_imports(text) == text


class TestConvertProject:
    def test_handlers_written(self, project, output):
        ProjectConverter().convert(project, output)
        hello = (output / "src" / "handlers" / "hello" / "index.ts").read_text(encoding="utf-8")
        assert "deno.land" not in hello
        assert 'from "../../shared/cors.js"' in hello
        assert 'process.env["GREETING"] ?? ""' in hello
        assert "export default handler;" in hello

    def test_async_handler(self, project, output):
        ProjectConverter().convert(project, output)
        payments = (output / "src" / "handlers" / "payments" / "index.ts").read_text(encoding="utf-8")
        assert 'import Stripe from "stripe";' in payments
        assert "async function handler(req) {" in payments

    def test_shared_code_copied(self, project, output):
        ProjectConverter().convert(project, output)
        assert (output / "src" / "shared" / "cors.ts").read_text(encoding="utf-8") == CORS_SOURCE

    def test_skipped_files_not_copied(self, project, output):
        ProjectConverter().convert(project, output)
        assert not (output / "src" / "handlers" / "hello" / "deno.json").exists()

    def test_broken_file_kept_verbatim(self, project, output):
        report = ProjectConverter().convert(project, output)
        broken = output / "src" / "handlers" / "broken" / "index.ts"
        assert broken.read_text(encoding="utf-8") == BROKEN_SOURCE
        assert report.not_transformed == ["broken/index.ts"]
        assert any(w.startswith("broken:") for w in report.warnings)
        assert report.errors == []

    def test_undecodable_file_does_not_stop_batch(self, project, output):
        latin = project / "supabase" / "functions" / "latin" / "index.ts"
        latin.parent.mkdir(parents=True)
        raw = b'// caf\xe9\nserve((req) => new Response("ok"));\n'
        latin.write_bytes(raw)

        report = ProjectConverter().convert(project, output)

        assert report.functions_converted == 4
        assert "latin/index.ts" in report.not_transformed
        assert report.errors == []
        assert (output / "src" / "handlers" / "latin" / "index.ts").read_bytes() == raw
        hello = (output / "src" / "handlers" / "hello" / "index.ts").read_text(encoding="utf-8")
        assert "export default handler;" in hello
        assert (output / "migration-report.json").exists()

    def test_untouched_runtime_code_reported(self, project, output):
        _write(
            project / "supabase" / "functions" / "info" / "index.ts",
            "export default function handler() {\n  return Deno.pid;\n}\n",
        )
        report = ProjectConverter().convert(project, output, ["info"])
        assert report.not_transformed == ["info/index.ts"]
        assert report.warnings == []

    def test_report(self, project, output):
        report = ProjectConverter().convert(project, output)
        assert report.functions_converted == 3
        data = json.loads((output / "migration-report.json").read_text(encoding="utf-8"))
        assert data["functionsConverted"] == 3
        assert data["sourceRepo"] == str(project)
        assert data["dependencies"] == ["stripe"]
        assert "GREETING" in data["envVariables"]
        assert data["notTransformed"] == ["broken/index.ts"]

    def test_manifests(self, project, output):
        ProjectConverter().convert(project, output)
        dependencies = json.loads((output / "package.dependencies.json").read_text(encoding="utf-8"))
        assert dependencies == {"stripe": "^14.14.0"}
        env_example = (output / ".env.example").read_text(encoding="utf-8")
        assert "GREETING=" in env_example
        assert "STRIPE_SECRET_KEY=" in env_example

    def test_selected_functions(self, project, output):
        report = ProjectConverter().convert(project, output, ["hello"])
        assert report.functions_converted == 1
        assert (output / "src" / "handlers" / "hello").is_dir()
        assert not (output / "src" / "handlers" / "payments").exists()

    def test_default_output_dir(self, project):
        ProjectConverter().convert(project)
        assert (project / "backend" / "src" / "handlers" / "hello" / "index.ts").exists()

    def test_report_disabled(self, project, output):
        settings = EdgeportSettings.model_validate({"conversion": {"write_report": False}})
        ProjectConverter(settings).convert(project, output)
        assert not (output / "migration-report.json").exists()
        assert (output / "package.dependencies.json").exists()

    def test_rerun_is_stable(self, project, output):
        ProjectConverter().convert(project, output)
        first = (output / "src" / "handlers" / "hello" / "index.ts").read_text(encoding="utf-8")
        ProjectConverter().convert(project, output)
        assert (output / "src" / "handlers" / "hello" / "index.ts").read_text(encoding="utf-8") == first

    def test_missing_functions_dir(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ProjectConverter().convert(tmp_path)
