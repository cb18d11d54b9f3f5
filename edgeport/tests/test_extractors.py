"""Tests for the dependency and environment variable extractors."""

import pytest
from edgeport.core.analysis import (
    collect_dependencies,
    collect_env_variables,
    extract_dependencies,
    extract_env_variables,
    generate_dependencies_object,
    generate_env_example,
)
from edgeport.core.mappings import map_package, package_root


MIXED_SOURCE = '''import Stripe from "npm:stripe@14";

const foo = Deno.env.get("FOO");
const bar = process.env.BAR;
'''


class TestMixedSource:
    def test_env_variables(self):
        assert extract_env_variables(MIXED_SOURCE) == {"FOO", "BAR"}

    def test_dependencies(self):
        assert extract_dependencies(MIXED_SOURCE) == {"stripe"}

    def test_repeatable(self):
        assert extract_env_variables(MIXED_SOURCE) == extract_env_variables(MIXED_SOURCE)
        assert extract_dependencies(MIXED_SOURCE) == extract_dependencies(MIXED_SOURCE)


# =========================================================================
# Tests: Environment variables
# =========================================================================

class TestEnvVariables:
    def test_single_quotes(self):
        assert extract_env_variables("Deno.env.get('TOKEN')") == {"TOKEN"}

    def test_template_literal(self):
        assert extract_env_variables("Deno.env.get(`PLAIN_NAME`)") == {"PLAIN_NAME"}

    def test_interpolated_template_skipped(self):
        assert extract_env_variables("Deno.env.get(`${prefix}_NAME`)") == set()

    def test_process_env_forms(self):
        source = 'process.env.ALPHA; process.env["BETA"]; process.env[\'GAMMA\'];'
        assert extract_env_variables(source) == {"ALPHA", "BETA", "GAMMA"}

    def test_import_meta_env(self):
        assert extract_env_variables("import.meta.env.VITE_APP_URL") == {"VITE_APP_URL"}

    def test_well_known_names_by_substring(self):
        source = 'const cfg = { url: env("SUPABASE_URL") };'
        assert extract_env_variables(source) == {"SUPABASE_URL"}

    def test_nested_well_known_names(self):
        result = extract_env_variables('Deno.env.get("STRIPE_SECRET_KEY")')
        assert result == {"STRIPE_SECRET_KEY", "SECRET_KEY"}

    def test_empty_source(self):
        assert extract_env_variables("") == set()

    def test_union_over_files(self):
        assert collect_env_variables(['Deno.env.get("A")', "process.env.B"]) == {"A", "B"}


# =========================================================================
# Tests: Dependencies
# =========================================================================

class TestDependencies:
    def test_scoped_registry_package(self):
        source = 'import { createClient } from "npm:@supabase/supabase-js@2";'
        assert extract_dependencies(source) == {"@supabase/supabase-js"}

    def test_secondary_registry(self):
        assert extract_dependencies('import { Hono } from "jsr:@hono/hono@4";') == {"@hono/hono"}

    def test_cdn_urls(self):
        source = (
            'import dayjs from "https://esm.sh/dayjs@1.11.10";\n'
            'import { z } from "https://cdn.skypack.dev/zod";\n'
        )
        assert extract_dependencies(source) == {"dayjs", "zod"}

    def test_legacy_host_mapped(self):
        source = 'import { Application } from "https://deno.land/x/oak@v12.6.1/mod.ts";'
        assert extract_dependencies(source) == {"koa"}

    def test_std_library_excluded(self):
        source = (
            'import { serve } from "https://deno.land/std@0.168.0/http/server.ts";\n'
            'import { encode } from "https://deno.land/x/std/encoding/hex.ts";\n'
        )
        assert extract_dependencies(source) == set()

    def test_subpath_reduced_to_package(self):
        assert extract_dependencies('import fp from "npm:lodash@4/fp";') == {"lodash"}

    def test_dynamic_and_side_effect_imports(self):
        source = 'import "npm:dotenv@16/config";\nconst m = await import("npm:nanoid@5");\n'
        assert extract_dependencies(source) == {"dotenv", "nanoid"}

    def test_usage_signature_without_import(self):
        source = "const supabase = createClient(url, key);"
        assert extract_dependencies(source) == {"@supabase/supabase-js"}

    def test_usage_signature_needs_all_tokens(self):
        assert extract_dependencies("const client = createClient(url);") == set()

    @pytest.mark.parametrize("source", [
        "import * as bcrypt from 'npm:bcryptjs@2';",
        "const digest = await hash(password);",
        "const ok = await compare(password, digest);",
    ])
    def test_password_hashing_usage(self, source):
        assert "bcrypt" in extract_dependencies(source)

    def test_union_over_files(self):
        sources =['import a from "npm:uuid@9";', 'import b from "npm:zod@3";']
        assert collect_dependencies(sources) == {"uuid", "zod"}

    def test_plain_specifiers_not_reported(self):
        assert extract_dependencies('import { join } from "node:path";') == set()


class TestPackageTables:
    @pytest.mark.parametrize("name, expected", [
        ("oak", "koa"),
        ("postgres", "pg"),
        ("mysql", "mysql2"),
        ("std", None),
        ("std/http", None),
        ("some-unknown-pkg", "some-unknown-pkg"),
    ])
    def test_map_package(self, name, expected):
        assert map_package(name) == expected

    def test_package_root(self):
        assert package_root("lodash/fp") == "lodash"
        assert package_root("@scope/pkg/sub/path") == "@scope/pkg"
        assert package_root("uuid") == "uuid"

    def test_tables_are_read_only(self):
        from edgeport.core.mappings import PACKAGE_MAPPINGS

        with pytest.raises(TypeError):
            PACKAGE_MAPPINGS["oak"] = "express"


# =========================================================================
# Tests: Manifest generation
# =========================================================================

class TestManifestGeneration:
    def test_dependencies_object(self):
        assert generate_dependencies_object({"stripe", "left-pad"}) == {
            "left-pad": "*",
            "stripe": "^14.14.0",
        }

    def test_dependencies_object_sorted(self):
        assert list(generate_dependencies_object({"zod", "axios", "uuid"})) == ["axios", "uuid", "zod"]

    def test_env_example_sections(self):
        content = generate_env_example({"SUPABASE_URL", "STRIPE_SECRET_KEY", "MY_FLAG"})
        assert content.startswith("# Server Configuration\nPORT=3001\n")
        assert "# Supabase\nSUPABASE_URL=\n" in content
        assert "# Stripe\nSTRIPE_SECRET_KEY=\n" in content
        assert "# Application\nMY_FLAG=\n" in content
        assert content.index("# Supabase") < content.index("# Application")

    def test_env_example_port(self):
        assert "PORT=8080" in generate_env_example(set(), port=8080)

    def test_env_example_does_not_mutate_input(self):
        names = {"SUPABASE_URL", "OTHER"}
        generate_env_example(names)
        assert names == {"SUPABASE_URL", "OTHER"}
