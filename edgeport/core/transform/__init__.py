"""edgeport transform engine: tree-sitter based source-to-source rewriting.

Public API:
    transform_source(file_path, source_text) → str
    transform_document(file_path, source_text) → TransformOutcome
    rewrite_specifier(specifier) → str | None
    detect_grammar(file_path) → str
"""

import logging
from typing import Optional

from ..config.settings import TransformSettings
from .models import (
    HandlerEmission,
    SourceParseError,
    SourceUnit,
    TransformError,
    TransformOutcome,
    TransformState,
)
from .pipeline import TransformPipeline, build_rules
from .specifiers import rewrite_specifier
from .utils import detect_grammar, is_script_file

logger = logging.getLogger(__name__)

__all__ = [
    "transform_source",
    "transform_document",
    "rewrite_specifier",
    "detect_grammar",
    "is_script_file",
    "build_rules",
    "HandlerEmission",
    "SourceParseError",
    "SourceUnit",
    "TransformError",
    "TransformOutcome",
    "TransformPipeline",
    "TransformState",
]


def transform_document(
    file_path: str,
    source_text: str,
    settings: Optional[TransformSettings] = None,
) -> TransformOutcome:
    """Run the rule pipeline over one file and report what happened.

    Args:
        file_path: Path of the file; only its extension is used, to pick
            the grammar
        source_text: Full text of the file
        settings: Transform settings (defaults when omitted)

    Returns:
        TransformOutcome with the rewritten text and the rules that fired

    Raises:
        SourceParseError: If the input or the rewritten output does not parse
    """
    return TransformPipeline(settings).run(SourceUnit(file_path, source_text))


def transform_source(
    file_path: str,
    source_text: str,
    settings: Optional[TransformSettings] = None,
) -> str:
    """Rewrite one edge-function source file for the server runtime.

    Never raises: if the file cannot be parsed or a rule fails, the
    original text is returned unchanged and a warning is logged.

    Args:
        file_path: Path of the file (selects the grammar)
        source_text: Full text of the file
        settings: Transform settings (defaults when omitted)

    Returns:
        Transformed source text, or ``source_text`` on failure
    """
    try:
        return transform_document(file_path, source_text, settings).output_text
    except SourceParseError as e:
        logger.warning(f"Not transforming {file_path}: {e}")
    except Exception as e:
        logger.warning(f"Transform failed for {file_path}, keeping original: {e}", exc_info=True)
    return source_text
