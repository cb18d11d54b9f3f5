"""Static analysis of edge-function sources.

Public API:
    extract_dependencies(source) → Set[str]
    extract_env_variables(source) → Set[str]
    analyze_project(root) → AnalysisResult
"""

from .analyzer import (
    analyze_function,
    analyze_functions,
    analyze_project,
    detect_project_structure,
    find_entry_file,
)
from .dependencies import collect_dependencies, extract_dependencies, generate_dependencies_object
from .env import collect_env_variables, extract_env_variables, generate_env_example
from .models import AnalysisResult, ConversionReport, FunctionInfo, ProjectInfo

__all__ = [
    "extract_dependencies",
    "extract_env_variables",
    "collect_dependencies",
    "collect_env_variables",
    "generate_dependencies_object",
    "generate_env_example",
    "analyze_function",
    "analyze_functions",
    "analyze_project",
    "detect_project_structure",
    "find_entry_file",
    "AnalysisResult",
    "ConversionReport",
    "FunctionInfo",
    "ProjectInfo",
]
