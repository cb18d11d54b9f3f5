"""Module specifier rewriting.

Maps foreign module references to plain npm package references:

    npm:@supabase/supabase-js@2            →  @supabase/supabase-js
    jsr:zod@^3.22                          →  zod
    https://deno.land/x/oak@v12/mod.ts     →  koa
    https://deno.land/std@0.168.0/...      →  (import dropped)
    https://esm.sh/@scope/pkg@1.2?target=… →  @scope/pkg

Precedence is most specific prefix first: registry prefix, then the
legacy host, then inline CDN hosts. Anything else passes through.
"""

import logging
import re
from typing import List, Optional

from ..constants import CDN_HOSTS, LEGACY_HOST, PRIMARY_REGISTRY, REGISTRY_PREFIXES
from ..mappings import LEGACY_PACKAGE_MAPPINGS
from .base import RewriteRule, quote_like, string_value
from .document import SourceDocument
from .models import Edit, TransformState
from .utils import named_args, walk

logger = logging.getLogger(__name__)

_REGISTRY_RE = re.compile(r"^(%s):(.*)$" % "|".join(REGISTRY_PREFIXES), re.DOTALL)

# name, optional @version (no slash), optional /subpath
_SCOPED_NAME_RE = re.compile(r"^(@[^/@]+/[^/@]+)(?:@[^/]*)?(/.*)?$")
_UNSCOPED_NAME_RE = re.compile(r"^([^/@]+)(?:@[^/]*)?(/.*)?$")

# deno.land/x/<pkg>[@version][/<subpath>]
_LEGACY_RE = re.compile(r"deno\.land/x/([^@/]+)(?:@[^/]+)?(?:/(.*))?$")
# Looser form without the /x/ segment, e.g. deno.land/std@0.168.0/http/server.ts
_LEGACY_FALLBACK_RE = re.compile(r"deno\.land/([^@/]+)(?:@[^/]+)?(?:/(.*))?$")

_CDN_RE = re.compile(
    r"^(?:https?:)?(?://)?(?:%s)/(@[^/@?#]+/[^/@?#]+|[^/@?#]+)(?:@[^/?#]*)?(/[^?#]*)?"
    % "|".join(re.escape(host) for host in CDN_HOSTS)
)

_TS_EXTENSION_RE = re.compile(r"\.tsx?$")


def strip_version(name: str) -> str:
    """Drop a ``@version`` suffix from a package reference, keeping any subpath.

    ``@scope/pkg@1.2.3`` → ``@scope/pkg``, ``pkg@^4/sub`` → ``pkg/sub``.
    A reference the patterns do not recognise is returned unmodified.
    """
    pattern = _SCOPED_NAME_RE if name.startswith("@") else _UNSCOPED_NAME_RE
    match = pattern.match(name)
    if not match:
        return name
    return match.group(1) + (match.group(2) or "")


def rewrite_registry_specifier(specifier: str) -> str:
    """Strip an ``npm:``/``jsr:`` prefix and its version suffix."""
    match = _REGISTRY_RE.match(specifier)
    if not match or not match.group(2):
        return specifier
    return strip_version(match.group(2))


def _clean_legacy_subpath(subpath: Optional[str]) -> str:
    if not subpath:
        return ""
    cleaned = _TS_EXTENSION_RE.sub("", subpath)
    if cleaned == "mod":
        cleaned = ""
    elif cleaned.endswith("/mod"):
        cleaned = cleaned[: -len("/mod")]
    return f"/{cleaned}" if cleaned else ""


def rewrite_legacy_specifier(specifier: str) -> Optional[str]:
    """Rewrite a ``deno.land`` URL through the legacy package table.

    Returns:
        The npm reference, ``None`` when the package is dropped, or the
        input unchanged when no pattern recognises it
    """
    match = _LEGACY_RE.search(specifier) or _LEGACY_FALLBACK_RE.search(specifier)
    if not match:
        return specifier

    package = match.group(1)
    subpath = _clean_legacy_subpath(match.group(2))
    if package in LEGACY_PACKAGE_MAPPINGS:
        mapped = LEGACY_PACKAGE_MAPPINGS[package]
        if mapped is None:
            return None
        return mapped + subpath
    return package + subpath


def rewrite_cdn_specifier(specifier: str) -> str:
    """Reduce an inline CDN URL to the package reference it serves."""
    match = _CDN_RE.match(specifier)
    if not match:
        return specifier
    return match.group(1) + (match.group(2) or "")


def rewrite_specifier(specifier: str) -> Optional[str]:
    """Return the replacement for a module reference.

    Returns:
        The rewritten reference (identical to the input when no rule
        matches), or ``None`` if the import should be removed
    """
    if _REGISTRY_RE.match(specifier):
        return rewrite_registry_specifier(specifier)
    if LEGACY_HOST in specifier:
        return rewrite_legacy_specifier(specifier)
    if any(host in specifier for host in CDN_HOSTS):
        return rewrite_cdn_specifier(specifier)
    return specifier


def _source_node(statement):
    if statement.type not in ("import_statement", "export_statement"):
        return None
    source = statement.child_by_field_name("source")
    if source is None or source.type != "string":
        return None
    return source


class SpecifierRule(RewriteRule):
    """Rewrite the source strings of top-level ``import``/``export ... from``.

    A specifier whose package maps to nothing removes the whole statement.
    """

    name = "specifiers"

    def collect_edits(self, document: SourceDocument, state: TransformState) -> List[Edit]:
        edits: List[Edit] = []
        for statement in document.root.children:
            source = _source_node(statement)
            if source is None:
                continue
            value = string_value(document, source)
            rewritten = rewrite_specifier(value)
            if rewritten is None:
                logger.debug(f"Dropping import of {value} in {state.file_path}")
                edits.append(document.statement_span(statement))
            elif rewritten != value:
                edits.append(Edit(source.start_byte, source.end_byte, quote_like(document, source, rewritten)))
        return edits


class RelativeExtensionRule(RewriteRule):
    """Point relative ``.ts`` imports at the compiled ``.js`` file."""

    name = "relative_extensions"

    def collect_edits(self, document: SourceDocument, state: TransformState) -> List[Edit]:
        edits: List[Edit] = []
        for statement in document.root.children:
            if statement.type != "import_statement":
                continue
            source = _source_node(statement)
            if source is None:
                continue
            value = string_value(document, source)
            if value.startswith(".") and value.endswith(".ts"):
                edits.append(Edit(
                    source.start_byte,
                    source.end_byte,
                    quote_like(document, source, value[: -len(".ts")] + ".js"),
                ))
        return edits


class DynamicImportRule(RewriteRule):
    """Registry-prefix rewriting for ``import("npm:...")``.

    Only the primary registry is handled in dynamic-import position;
    ``jsr:`` and CDN URLs are left as written.
    """

    name = "dynamic_imports"

    def collect_edits(self, document: SourceDocument, state: TransformState) -> List[Edit]:
        prefix = f"{PRIMARY_REGISTRY}:"
        edits: List[Edit] = []
        for node in walk(document.root):
            if node.type != "call_expression":
                continue
            function = node.child_by_field_name("function")
            if function is None or function.type != "import":
                continue
            args = named_args(node.child_by_field_name("arguments"))
            if not args or args[0].type != "string":
                continue
            value = string_value(document, args[0])
            if value.startswith(prefix):
                edits.append(Edit(
                    args[0].start_byte,
                    args[0].end_byte,
                    quote_like(document, args[0], rewrite_registry_specifier(value)),
                ))
        return edits
