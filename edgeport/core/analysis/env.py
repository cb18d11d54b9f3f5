"""Extract environment variable names from source code.

Deliberately coarse: the result feeds ``.env.example`` generation, which
only needs a superset, so a false positive is harmless and a false
negative is not.
"""

import logging
import re
from typing import Iterable, List, Optional, Pattern, Set

from ..constants import WELL_KNOWN_ENV_VARS

logger = logging.getLogger(__name__)


def _compile(pattern: str) -> Optional[Pattern[str]]:
    try:
        return re.compile(pattern)
    except re.error as e:
        logger.error(f"Invalid env pattern {pattern!r}: {e}")
        return None


# Deno.env.get("VAR") / Deno.env.get('VAR')
_DENO_GET = _compile(r"""Deno\.env\.get\s*\(\s*['"]([^'"]+)['"]\s*\)""")
# Deno.env.get(`VAR`); templates with interpolation are skipped
_DENO_GET_TEMPLATE = _compile(r"Deno\.env\.get\s*\(\s*`([^`]+)`\s*\)")

_PLAIN_PATTERNS: List[Optional[Pattern[str]]] = [
    _DENO_GET,
    # process.env.VAR
    _compile(r"process\.env\.([A-Z_][A-Z0-9_]*)"),
    # process.env["VAR"]
    _compile(r"""process\.env\[['"]([^'"]+)['"]\]"""),
    # import.meta.env.VITE_VAR
    _compile(r"import\.meta\.env\.([A-Z_][A-Z0-9_]*)"),
]


def extract_env_variables(source: str) -> Set[str]:
    """Return the environment variable names a source file reads.

    Never raises.
    """
    env_vars: Set[str] = set()

    for pattern in _PLAIN_PATTERNS:
        if pattern is None:
            continue
        for match in pattern.finditer(source):
            env_vars.add(match.group(1))

    if _DENO_GET_TEMPLATE is not None:
        for match in _DENO_GET_TEMPLATE.finditer(source):
            if "$" not in match.group(1):
                env_vars.add(match.group(1))

    for name in WELL_KNOWN_ENV_VARS:
        if name in source:
            env_vars.add(name)

    return env_vars


def collect_env_variables(sources: Iterable[str]) -> Set[str]:
    """Union of ``extract_env_variables`` over several files."""
    result: Set[str] = set()
    for source in sources:
        result |= extract_env_variables(source)
    return result


# Section name → variables grouped under it in .env.example
ENV_SECTIONS = (
    ("Supabase", ("SUPABASE_URL", "SUPABASE_ANON_KEY", "SUPABASE_SERVICE_ROLE_KEY", "SUPABASE_JWT_SECRET", "DATABASE_URL")),
    ("OpenAI", ("OPENAI_API_KEY", "OPENAI_ORG_ID")),
    ("Stripe", ("STRIPE_SECRET_KEY", "STRIPE_WEBHOOK_SECRET", "STRIPE_PUBLISHABLE_KEY")),
    ("Email", ("RESEND_API_KEY", "SENDGRID_API_KEY", "SMTP_HOST", "SMTP_PORT", "SMTP_USER", "SMTP_PASS")),
)


def generate_env_example(env_vars: Iterable[str], port: int = 3001) -> str:
    """Render ``.env.example`` content for a set of variable names.

    Known platform variables are grouped by service; the rest go under
    "Application" in sorted order. The input is not modified.
    """
    remaining = set(env_vars)
    lines = [
        "# Server Configuration",
        f"PORT={port}",
        f"BASE_URL=http://localhost:{port}",
        "BASE_PATH=/functions/v1",
        "",
        "# Environment",
        "NODE_ENV=development",
        "",
    ]

    for section, names in ENV_SECTIONS:
        present = [n for n in names if n in remaining]
        if not present:
            continue
        lines.append(f"# {section}")
        lines.extend(f"{n}=" for n in present)
        lines.append("")
        remaining.difference_update(present)

    if remaining:
        lines.append("# Application")
        lines.extend(f"{n}=" for n in sorted(remaining))
        lines.append("")

    return "\n".join(lines)
