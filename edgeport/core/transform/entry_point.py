"""Entry-point normalization.

Edge functions start serving with a top-level registration call:

    serve(async (req) => { ... })
    Deno.serve(handler)
    Deno.serve({ port: 8000 }, (req) => new Response("ok"))
    Deno.serve({ handler: async (req) => { ... } })

The server runtime instead imports a module's default export. A function
literal becomes ``function handler(...) {...}`` followed by
``export default handler;``; an identifier is exported as-is.

Only the first registration call is rewritten. Bare ``serve(...)`` calls
are checked before ``Deno.serve(...)`` calls, each in document order.
"""

import logging
from typing import Callable, List, Optional

import tree_sitter

from ..constants import RUNTIME_NAMESPACE, SERVE_FUNCTION, SERVE_IMPORT_SOURCES
from .base import RewriteRule, is_identifier, member_parts, string_value
from .document import SourceDocument
from .models import Edit, TransformState
from .utils import contains_suspension_point, has_keyword, named_args, walk

logger = logging.getLogger(__name__)

FUNCTION_LITERAL_TYPES = frozenset({
    "arrow_function",
    "function_expression",
    "function",
    "generator_function",
    "method_definition",
})

IDENTIFIER_TYPES = frozenset({"identifier", "shorthand_property_identifier"})

HandlerMatcher = Callable[[SourceDocument, tree_sitter.Node], Optional[tree_sitter.Node]]


# =========================================================================
# Registration call matchers
# =========================================================================


def _usable_handler(node: Optional[tree_sitter.Node]) -> Optional[tree_sitter.Node]:
    if node is not None and (node.type in FUNCTION_LITERAL_TYPES or node.type in IDENTIFIER_TYPES):
        return node
    return None


def match_bare_serve(document: SourceDocument, call: tree_sitter.Node) -> Optional[tree_sitter.Node]:
    """Handler argument of ``serve(fn)``, or None."""
    if not is_identifier(document, call.child_by_field_name("function"), SERVE_FUNCTION):
        return None
    args = named_args(call.child_by_field_name("arguments"))
    return _usable_handler(args[0]) if args else None


def _handler_property(document: SourceDocument, options: tree_sitter.Node) -> Optional[tree_sitter.Node]:
    """Find the ``handler`` entry of an options object literal."""
    for prop in options.named_children:
        if prop.type == "pair":
            key = prop.child_by_field_name("key")
            name = string_value(document, key) if key is not None and key.type == "string" else document.text(key)
            if name == "handler":
                return prop.child_by_field_name("value")
        elif prop.type == "shorthand_property_identifier" and document.text(prop) == "handler":
            return prop
        elif prop.type == "method_definition" and document.text(prop.child_by_field_name("name")) == "handler":
            return prop
    return None


def match_runtime_serve(document: SourceDocument, call: tree_sitter.Node) -> Optional[tree_sitter.Node]:
    """Handler argument of ``Deno.serve(...)``, or None.

    The handler is the only argument, the second of two, or the
    ``handler`` property of an options object in either position.
    """
    obj, method = member_parts(document, call.child_by_field_name("function"))
    if method != "serve" or not is_identifier(document, obj, RUNTIME_NAMESPACE):
        return None
    args = named_args(call.child_by_field_name("arguments"))
    if not args:
        return None
    handler = args[1] if len(args) > 1 else args[0]
    if handler.type == "object":
        handler = _handler_property(document, handler)
    return _usable_handler(handler)


# Checked in priority order
REGISTRATION_MATCHERS: List[HandlerMatcher] = [match_bare_serve, match_runtime_serve]


# =========================================================================
# Emission
# =========================================================================


def _parameters_text(document: SourceDocument, fn: tree_sitter.Node) -> str:
    params = fn.child_by_field_name("parameters")
    if params is not None:
        return document.text(params)
    single = fn.child_by_field_name("parameter")
    return f"({document.text(single)})" if single is not None else "()"


def _body_text(document: SourceDocument, body: tree_sitter.Node) -> str:
    if body.type == "statement_block":
        return document.text(body)
    return "{\n  return " + document.text(body) + ";\n}"


def render_handler_declaration(document: SourceDocument, fn: tree_sitter.Node, name: str) -> str:
    """Render a function literal as a named function declaration.

    The declaration is async when the literal was declared async or its
    body awaits.
    """
    body = fn.child_by_field_name("body")
    is_async = has_keyword(fn, "async") or contains_suspension_point(body)
    star = "*" if has_keyword(fn, "*") else ""
    return "".join([
        "async " if is_async else "",
        f"function{star} {name}",
        document.text(fn.child_by_field_name("type_parameters")),
        _parameters_text(document, fn),
        document.text(fn.child_by_field_name("return_type")),
        " ",
        _body_text(document, body),
    ])


def existing_default_export(document: SourceDocument) -> Optional[str]:
    """Name bound by a top-level ``export default``, ``"default"`` if anonymous, else None."""
    for statement in document.root.children:
        if statement.type != "export_statement" or not has_keyword(statement, "default"):
            continue
        value = statement.child_by_field_name("value")
        if value is not None and value.type == "identifier":
            return document.text(value)
        declaration = statement.child_by_field_name("declaration")
        if declaration is not None and declaration.child_by_field_name("name") is not None:
            return document.text(declaration.child_by_field_name("name"))
        return "default"
    return None


class EntryPointRule(RewriteRule):
    """Turn the first registration call into a default-exported handler.

    Precondition: none beyond a parsed tree; the match does not depend on
    import specifiers. Postcondition: ``state.emission`` is ``EMITTED`` if
    any registration call with a usable handler exists.
    """

    name = "entry_point"

    def __init__(self, matchers: Optional[List[HandlerMatcher]] = None):
        self._matchers = matchers or REGISTRATION_MATCHERS

    def collect_edits(self, document: SourceDocument, state: TransformState) -> List[Edit]:
        if state.handler_emitted:
            return []

        # A module can only have one default export; if it already has
        # one (e.g. from an earlier run) the handler counts as emitted.
        existing = existing_default_export(document)
        if existing is not None:
            state.mark_emitted(existing)
            return []

        for matcher in self._matchers:
            for statement in document.root.children:
                if statement.type != "expression_statement":
                    continue
                call = statement.named_children[0] if statement.named_children else None
                if call is None or call.type != "call_expression":
                    continue
                handler = matcher(document, call)
                if handler is None:
                    continue

                if handler.type in IDENTIFIER_TYPES:
                    exported = document.text(handler)
                    replacement = f"export default {exported};"
                else:
                    exported = state.handler_name
                    declaration = render_handler_declaration(document, handler, exported)
                    replacement = f"{declaration}\nexport default {exported};"

                state.mark_emitted(exported)
                logger.debug(
                    f"Normalized registration call at line {statement.start_point.row + 1} "
                    f"of {state.file_path} into default export {exported}"
                )
                return [Edit(statement.start_byte, statement.end_byte, replacement)]

        return []


class ServeImportRule(RewriteRule):
    """Remove the ``serve`` specifier from std http server imports.

    The import statement goes away entirely once nothing is left in it.
    """

    name = "serve_import"

    def collect_edits(self, document: SourceDocument, state: TransformState) -> List[Edit]:
        edits: List[Edit] = []
        for statement in document.root.children:
            if statement.type != "import_statement":
                continue
            source = statement.child_by_field_name("source")
            if source is None:
                continue
            value = string_value(document, source)
            if not any(s in value for s in SERVE_IMPORT_SOURCES):
                continue

            clause = next((c for c in statement.named_children if c.type == "import_clause"), None)
            named = next((c for c in clause.named_children if c.type == "named_imports"), None) if clause else None
            if named is None:
                continue

            specifiers = [c for c in named.named_children if c.type == "import_specifier"]
            kept = [
                s for s in specifiers
                if document.text(s.child_by_field_name("name")) != SERVE_FUNCTION
            ]
            if len(kept) == len(specifiers):
                continue

            others = [c for c in clause.named_children if c.type not in ("named_imports", "comment")]
            if kept:
                text = "{ " + ", ".join(document.text(s) for s in kept) + " }"
                edits.append(Edit(named.start_byte, named.end_byte, text))
            elif others:
                text = ", ".join(document.text(o) for o in others)
                edits.append(Edit(clause.start_byte, clause.end_byte, text))
            else:
                edits.append(document.statement_span(statement))
        return edits


class HandlerAsyncRule(RewriteRule):
    """Make a handler that awaits but is not declared async into an async one.

    Covers ``function handler() {}`` and ``const handler = () => {}``
    anywhere in the file.
    """

    name = "handler_async"

    def collect_edits(self, document: SourceDocument, state: TransformState) -> List[Edit]:
        edits: List[Edit] = []
        for node in walk(document.root):
            if node.type == "function_declaration":
                fn = node
                name = node.child_by_field_name("name")
            elif node.type == "variable_declarator":
                fn = node.child_by_field_name("value")
                name = node.child_by_field_name("name")
                if fn is None or fn.type not in ("arrow_function", "function_expression", "function"):
                    continue
            else:
                continue

            if not is_identifier(document, name, state.handler_name):
                continue
            if has_keyword(fn, "async") or not contains_suspension_point(fn.child_by_field_name("body")):
                continue
            edits.append(Edit(fn.start_byte, fn.start_byte, "async "))
        return edits
