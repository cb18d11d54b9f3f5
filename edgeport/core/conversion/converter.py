"""Project conversion orchestration.

Copies each edge function into the backend layout, runs the transform
pipeline over every script file, and writes the migration report plus
the dependency and environment manifests. A file that fails to
transform keeps its original text; the batch always runs to the end.
"""

import json
import logging
import os
import re
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from ..analysis.analyzer import analyze_functions, collect_script_files, detect_project_structure
from ..analysis.dependencies import generate_dependencies_object
from ..analysis.env import generate_env_example
from ..analysis.models import AnalysisResult, ConversionReport, FunctionInfo
from ..config.settings import EdgeportSettings
from ..constants import FUNCTIONS_DIR, LEGACY_HOST, PRIMARY_REGISTRY, RUNTIME_NAMESPACE
from ..transform import TransformError, transform_document

logger = logging.getLogger(__name__)

REPORT_FILE = "migration-report.json"
DEPENDENCIES_FILE = "package.dependencies.json"
ENV_EXAMPLE_FILE = ".env.example"

# Text that marks a file as written for the source runtime
RUNTIME_MARKERS = (f"{RUNTIME_NAMESPACE}.", f"{PRIMARY_REGISTRY}:", LEGACY_HOST)

_SHARED_IMPORT_RE = re.compile(r"""from\s+(['"])\.\./_shared/([^'"]+)\1""")


def fix_shared_imports(text: str, shared_path: str = "../../shared") -> str:
    """Repoint ``from '../_shared/x'`` imports at the relocated shared folder.

    Plain text substitution on transformed output; the quote style of
    each import is kept.
    """
    return _SHARED_IMPORT_RE.sub(
        lambda m: f"from {m.group(1)}{shared_path}/{m.group(2)}{m.group(1)}",
        text,
    )


class ProjectConverter:
    """Converts a Supabase project's edge functions into backend handlers."""

    def __init__(self, settings: Optional[EdgeportSettings] = None):
        self.settings = settings or EdgeportSettings()

    def convert(
        self,
        source_root: Path,
        output_dir: Optional[Path] = None,
        function_names: Optional[Iterable[str]] = None,
    ) -> ConversionReport:
        """Convert every (or the named) edge function under ``source_root``.

        Raises:
            FileNotFoundError: If ``source_root`` has no functions folder
        """
        conversion = self.settings.conversion
        info = detect_project_structure(source_root)
        if info.functions_dir is None:
            raise FileNotFoundError(f"No {'/'.join(FUNCTIONS_DIR)} directory under {source_root}")

        backend_dir = output_dir or (source_root / conversion.output_dir)
        report = ConversionReport(
            timestamp=datetime.now(timezone.utc).isoformat(),
            source_repo=str(source_root),
        )

        functions = analyze_functions(info.functions_dir, function_names)
        analysis = AnalysisResult.from_functions(functions)
        logger.info(f"Converting {len(functions)} function(s) into {backend_dir}")

        if info.shared_dir is not None:
            self.copy_shared_code(info.shared_dir, backend_dir, report)

        for fn in functions:
            try:
                self.process_function(fn, info.functions_dir, backend_dir, report)
                report.functions_converted += 1
            except (OSError, ValueError) as e:
                logger.error(f"Failed to convert function {fn.name}: {e}")
                report.errors.append(f"{fn.name}: {e}")

        report.dependencies = sorted(analysis.dependencies)
        report.env_variables = sorted(analysis.env_vars)
        self.write_manifests(backend_dir, analysis, report)
        return report

    # ── Per-function work ────────────────────────────────────────────

    def _ignore_skipped(self, directory, names):
        return [n for n in names if n in self.settings.conversion.skip_files]

    def process_function(
        self,
        fn: FunctionInfo,
        functions_dir: Path,
        backend_dir: Path,
        report: ConversionReport,
    ) -> None:
        """Copy one function to the handlers folder and transform its files."""
        conversion = self.settings.conversion
        target_dir = backend_dir / conversion.handlers_dir / fn.name
        shutil.copytree(functions_dir / fn.name, target_dir, ignore=self._ignore_skipped, dirs_exist_ok=True)

        shared_path = os.path.relpath(backend_dir / conversion.shared_dir, target_dir).replace(os.sep, "/")
        for rel in collect_script_files(target_dir):
            exported = self._transform_file(target_dir / rel, f"{fn.name}/{rel}", report, shared_path)
            if rel == fn.entry_file and not exported:
                report.warnings.append(f"{fn.name}: no default export in {rel}, add one by hand")

    def copy_shared_code(self, shared_dir: Path, backend_dir: Path, report: ConversionReport) -> None:
        """Copy ``_shared`` to the shared folder and transform it in place."""
        target_dir = backend_dir / self.settings.conversion.shared_dir
        shutil.copytree(shared_dir, target_dir, ignore=self._ignore_skipped, dirs_exist_ok=True)
        for rel in collect_script_files(target_dir):
            self._transform_file(target_dir / rel, f"_shared/{rel}", report)

    def _transform_file(
        self,
        path: Path,
        label: str,
        report: ConversionReport,
        shared_path: Optional[str] = None,
    ) -> bool:
        """Transform one copied file in place.

        Returns:
            True if the file ends up with a default export
        """
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            # Left as copied; rewriting a lossy decode would corrupt it
            logger.warning(f"Cannot read {label}, keeping it as copied: {e}")
            report.not_transformed.append(label)
            return False

        try:
            outcome = transform_document(str(path), content, self.settings.transform)
            transformed = outcome.output_text
            logger.debug(f"Transformed: {label} ({', '.join(outcome.applied_rules) or 'no changes'})")
            if not outcome.changed and any(marker in content for marker in RUNTIME_MARKERS):
                logger.warning(f"{label} still uses source-runtime APIs after transformation")
                report.not_transformed.append(label)
        except TransformError as e:
            logger.warning(f"Failed to transform {label}: {e}")
            report.not_transformed.append(label)
            transformed = content
        except Exception as e:
            logger.warning(f"Failed to transform {label}: {e}", exc_info=True)
            report.not_transformed.append(label)
            transformed = content

        if shared_path is not None:
            transformed = fix_shared_imports(transformed, shared_path)
        if transformed != content:
            path.write_text(transformed, encoding="utf-8")
        return "export default" in transformed

    # ── Manifests ────────────────────────────────────────────────────

    def write_manifests(self, backend_dir: Path, analysis: AnalysisResult, report: ConversionReport) -> None:
        """Write the dependency list, .env.example and (optionally) the report."""
        backend_dir.mkdir(parents=True, exist_ok=True)

        dependencies = generate_dependencies_object(analysis.dependencies)
        (backend_dir / DEPENDENCIES_FILE).write_text(json.dumps(dependencies, indent=2) + "\n", encoding="utf-8")
        (backend_dir / ENV_EXAMPLE_FILE).write_text(generate_env_example(analysis.env_vars), encoding="utf-8")

        if self.settings.conversion.write_report:
            (backend_dir / REPORT_FILE).write_text(json.dumps(report.to_dict(), indent=2) + "\n", encoding="utf-8")
            logger.info(f"Wrote {REPORT_FILE} to {backend_dir}")
