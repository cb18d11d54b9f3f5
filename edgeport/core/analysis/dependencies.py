"""Extract npm dependencies from Deno-style source code.

Static regex scan, no parsing: works on files the transform engine
cannot parse. Every foreign name goes through ``map_package`` so the
reported dependencies match what the specifier rewriter emits.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Pattern, Set, Tuple

from ..constants import CDN_HOSTS
from ..mappings import PACKAGE_VERSIONS, map_package, package_root

logger = logging.getLogger(__name__)

_IMPORT_HEAD = r"""(?:from|import)\s*\(?\s*['"]"""


def _compile(pattern: str) -> Optional[Pattern[str]]:
    try:
        return re.compile(pattern)
    except re.error as e:
        logger.error(f"Invalid dependency pattern {pattern!r}: {e}")
        return None


# Every captured name goes through the package table
_IMPORT_PATTERNS: List[Optional[Pattern[str]]] = [
    # npm:pkg[@version]
    _compile(_IMPORT_HEAD + r"""npm:([^'"@]+)(?:@[^'"]+)?['"]"""),
    # npm:@scope/pkg[@version]
    _compile(_IMPORT_HEAD + r"""npm:(@[^/'"]+/[^'"@]+)(?:@[^'"]+)?['"]"""),
    # jsr:pkg / jsr:@scope/pkg
    _compile(_IMPORT_HEAD + r"""jsr:((?:@[^/'"]+/)?[^'"@]+)(?:@[^'"]+)?['"]"""),
    # https://<cdn>/pkg[@version] / https://<cdn>/@scope/pkg[@version]
    _compile(
        _IMPORT_HEAD
        + r"""(?:https?:)?(?://)?(?:%s)/((?:@[^/'"@?]+/)?[^@'"?/]+)"""
        % "|".join(re.escape(h) for h in CDN_HOSTS)
    ),
    # deno.land/x/pkg
    _compile(_IMPORT_HEAD + r"""(?:https?://)?deno\.land/x/([^@/'"]+)"""),
]


@dataclass(frozen=True)
class UsageSignature:
    """Source text that implies a dependency even without an import."""

    package: str
    any_of: Tuple[str, ...]
    all_of: Tuple[str, ...] = ()

    def matches(self, source: str) -> bool:
        if self.all_of and not all(token in source for token in self.all_of):
            return False
        return any(token in source for token in self.any_of)


USAGE_SIGNATURES: Tuple[UsageSignature, ...] = (
    UsageSignature("@supabase/supabase-js", any_of=("createClient",), all_of=("supabase",)),
    UsageSignature("openai", any_of=("OpenAI", "openai")),
    UsageSignature("stripe", any_of=("Stripe", "stripe")),
    UsageSignature("resend", any_of=("Resend", "resend")),
    UsageSignature("bcrypt", any_of=("bcrypt", "hash(", "compare(")),
)


def extract_dependencies(source: str) -> Set[str]:
    """Return the npm packages a source file needs.

    Never raises; a pattern that fails to compile simply matches nothing.
    Packages that map to ``None`` (built into the target runtime) are left
    out.
    """
    dependencies: Set[str] = set()

    for pattern in _IMPORT_PATTERNS:
        if pattern is None:
            continue
        for match in pattern.finditer(source):
            name = package_root(match.group(1).strip())
            if not name:
                continue
            package = map_package(name)
            if package:
                dependencies.add(package)

    for signature in USAGE_SIGNATURES:
        if signature.matches(source):
            dependencies.add(signature.package)

    return dependencies


def collect_dependencies(sources: Iterable[str]) -> Set[str]:
    """Union of ``extract_dependencies`` over several files."""
    result: Set[str] = set()
    for source in sources:
        result |= extract_dependencies(source)
    return result


def generate_dependencies_object(packages: Iterable[str]) -> Dict[str, str]:
    """Build a package.json ``dependencies`` mapping, ``*`` for unknown versions."""
    return {pkg: PACKAGE_VERSIONS.get(pkg, "*") for pkg in sorted(packages) if pkg}
