"""Analysis data models.

Plain containers describing a Supabase project and its edge functions.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Set


@dataclass
class FunctionInfo:
    """One edge function folder after a full scan of its files."""

    name: str
    entry_file: str  # Relative to the function folder
    files: List[str]  # Relative script paths
    dependencies: Set[str] = field(default_factory=set)
    env_vars: Set[str] = field(default_factory=set)
    uses_shared: bool = False


@dataclass
class ProjectInfo:
    """Layout detected under a project root."""

    root: Path
    functions_dir: Optional[Path] = None
    shared_dir: Optional[Path] = None
    frontend_dir: Optional[Path] = None
    functions: List[str] = field(default_factory=list)


@dataclass
class AnalysisResult:
    """Functions plus the dependency/env-var union across all of them."""

    functions: List[FunctionInfo]
    dependencies: Set[str] = field(default_factory=set)
    env_vars: Set[str] = field(default_factory=set)
    total_files: int = 0

    @classmethod
    def from_functions(cls, functions: List[FunctionInfo]) -> "AnalysisResult":
        result = cls(functions=functions)
        for fn in functions:
            result.dependencies |= fn.dependencies
            result.env_vars |= fn.env_vars
            result.total_files += len(fn.files)
        return result


@dataclass
class ConversionReport:
    """Summary written to migration-report.json."""

    timestamp: str
    source_repo: str
    functions_converted: int = 0
    dependencies: List[str] = field(default_factory=list)
    env_variables: List[str] = field(default_factory=list)
    not_transformed: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "sourceRepo": self.source_repo,
            "functionsConverted": self.functions_converted,
            "dependencies": self.dependencies,
            "envVariables": self.env_variables,
            "notTransformed": self.not_transformed,
            "warnings": self.warnings,
            "errors": self.errors,
        }
