"""Project structure detection and per-function analysis."""

import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional

from ..constants import (
    ENTRY_FILE_CANDIDATES,
    FRONTEND_INDICATORS,
    FUNCTIONS_DIR,
    SHARED_DIR_NAME,
)
from ..transform.utils import is_script_file
from .dependencies import extract_dependencies
from .env import extract_env_variables
from .models import AnalysisResult, FunctionInfo, ProjectInfo

logger = logging.getLogger(__name__)

SHARED_IMPORT_MARKERS = ("../_shared", "/_shared/")

# Directories to skip during file walking
SKIP_DIRECTORIES = frozenset({
    "node_modules",
    ".git",
    "dist",
    "build",
    "coverage",
})


def should_skip_directory(dir_name: str) -> bool:
    return dir_name in SKIP_DIRECTORIES or dir_name.startswith(".")


def collect_script_files(folder: Path) -> List[str]:
    """Walk ``folder`` and return script paths relative to it, sorted."""
    files = []
    for dirpath, dirnames, filenames in os.walk(folder):
        dirnames[:] = [d for d in dirnames if not should_skip_directory(d)]
        for fname in filenames:
            if is_script_file(fname):
                rel = os.path.relpath(os.path.join(dirpath, fname), folder)
                files.append(rel.replace(os.sep, "/"))
    return sorted(files)


def list_function_names(functions_dir: Path) -> List[str]:
    """Function folders are the direct subdirectories not starting with ``_``."""
    return sorted(
        entry.name for entry in functions_dir.iterdir()
        if entry.is_dir() and not entry.name.startswith("_")
    )


def detect_project_structure(root: Path) -> ProjectInfo:
    """Locate the functions folder, shared code and frontend under ``root``."""
    info = ProjectInfo(root=root)

    functions_dir = root.joinpath(*FUNCTIONS_DIR)
    if functions_dir.is_dir():
        info.functions_dir = functions_dir
        info.functions = list_function_names(functions_dir)
        shared_dir = functions_dir / SHARED_DIR_NAME
        if shared_dir.is_dir():
            info.shared_dir = shared_dir
            logger.debug("Found _shared directory")

    for indicator in FRONTEND_INDICATORS:
        if (root / indicator).exists():
            info.frontend_dir = root
            break

    frontend_folder = root / "frontend"
    if frontend_folder.is_dir():
        info.frontend_dir = frontend_folder

    return info


def find_entry_file(folder: Path) -> Optional[str]:
    """Return the entry file name of a function folder, or None."""
    for candidate in ENTRY_FILE_CANDIDATES:
        if (folder / candidate).is_file():
            return candidate

    fallback = sorted(
        p.name for p in folder.iterdir()
        if p.is_file() and p.suffix in (".ts", ".js", ".tsx")
    )
    return fallback[0] if fallback else None


def analyze_function(folder: Path) -> Optional[FunctionInfo]:
    """Scan every script file of one function folder.

    The FunctionInfo is only built once all files have been read, so a
    read failure leaves nothing half-populated behind.
    """
    entry_file = find_entry_file(folder)
    if not entry_file:
        logger.warning(f"Skipping {folder.name}: no entry file found")
        return None

    files = collect_script_files(folder)
    dependencies = set()
    env_vars = set()
    uses_shared = False

    for rel in files:
        try:
            content = (folder / rel).read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.warning(f"Skipping {folder.name}: cannot read {rel}: {e}")
            return None
        dependencies |= extract_dependencies(content)
        env_vars |= extract_env_variables(content)
        if any(marker in content for marker in SHARED_IMPORT_MARKERS):
            uses_shared = True

    return FunctionInfo(
        name=folder.name,
        entry_file=entry_file,
        files=files,
        dependencies=dependencies,
        env_vars=env_vars,
        uses_shared=uses_shared,
    )


def analyze_functions(
    functions_dir: Path,
    function_names: Optional[Iterable[str]] = None,
) -> List[FunctionInfo]:
    """Analyze the function folders under ``functions_dir``.

    Args:
        functions_dir: The ``supabase/functions`` directory
        function_names: Restrict to these functions (default: all)

    Returns:
        FunctionInfo for every function with an entry file
    """
    names = list_function_names(functions_dir)
    if function_names is not None:
        wanted = set(function_names)
        missing = wanted - set(names)
        for name in sorted(missing):
            logger.warning(f"Function {name} not found in {functions_dir}")
        names = [n for n in names if n in wanted]

    results: List[FunctionInfo] = []
    for name in names:
        info = analyze_function(functions_dir / name)
        if info is not None:
            results.append(info)
    return results


def analyze_project(root: Path, function_names: Optional[Iterable[str]] = None) -> AnalysisResult:
    """Detect the project layout and analyze all of its functions.

    Raises:
        FileNotFoundError: If ``root`` has no ``supabase/functions`` folder
    """
    info = detect_project_structure(root)
    if info.functions_dir is None:
        raise FileNotFoundError(f"No {'/'.join(FUNCTIONS_DIR)} directory under {root}")

    functions = analyze_functions(info.functions_dir, function_names)
    result = AnalysisResult.from_functions(functions)
    logger.info(
        "Analyzed %d function(s): %d dependencies, %d env vars",
        len(functions), len(result.dependencies), len(result.env_vars),
    )
    return result
