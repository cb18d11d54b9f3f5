"""Shared constants for edgeport.

This module contains constants that are used across multiple modules
to avoid duplication and ensure consistency.
"""

# =============================================================================
# Source Runtime Identifiers
# =============================================================================

# Root namespace of the source runtime (Deno.env, Deno.serve, Deno.Foo types)
RUNTIME_NAMESPACE = "Deno"

# Bare registration function imported from the std http module
SERVE_FUNCTION = "serve"

# Import-path spellings that have historically exported `serve`
SERVE_IMPORT_SOURCES = (
    "http/server",
    "https://deno.land/std/http/server.ts",
    "https://deno.land/std@",
    "std/http/server",
)

# Registry prefixes understood by the specifier rewriter
PRIMARY_REGISTRY = "npm"
SECONDARY_REGISTRY = "jsr"
REGISTRY_PREFIXES = (PRIMARY_REGISTRY, SECONDARY_REGISTRY)

# Legacy module host (deno.land/x/<pkg>)
LEGACY_HOST = "deno.land"

# Hosts serving npm packages as inline ES modules
CDN_HOSTS = (
    "esm.sh",
    "cdn.skypack.dev",
    "unpkg.com",
    "cdn.jsdelivr.net/npm",
)

# =============================================================================
# Default Handler Configuration
# =============================================================================

DEFAULT_HANDLER_NAME = "handler"

# =============================================================================
# Environment Variables
# =============================================================================

# Platform variables that are often read indirectly (config objects,
# helper wrappers) and therefore detected by plain substring search
WELL_KNOWN_ENV_VARS = (
    "SUPABASE_URL",
    "SUPABASE_ANON_KEY",
    "SUPABASE_SERVICE_ROLE_KEY",
    "SUPABASE_JWT_SECRET",
    "DATABASE_URL",
    "OPENAI_API_KEY",
    "STRIPE_SECRET_KEY",
    "STRIPE_WEBHOOK_SECRET",
    "RESEND_API_KEY",
    "SENDGRID_API_KEY",
    "JWT_SECRET",
    "API_KEY",
    "SECRET_KEY",
)

# =============================================================================
# Project Layout
# =============================================================================

FUNCTIONS_DIR = ("supabase", "functions")
SHARED_DIR_NAME = "_shared"

ENTRY_FILE_CANDIDATES = (
    "index.ts",
    "index.tsx",
    "index.js",
    "main.ts",
    "main.tsx",
    "mod.ts",
    "handler.ts",
)

FRONTEND_INDICATORS = (
    "src/App.tsx",
    "src/main.tsx",
    "index.html",
    "vite.config.ts",
    "vite.config.js",
    "package.json",
)

# Files never copied into the converted backend
SKIPPED_FILES = (
    ".env",
    ".env.local",
    ".env.example",
    "deno.json",
    "deno.jsonc",
)
