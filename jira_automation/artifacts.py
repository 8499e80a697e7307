"""
Artifact Store

Filesystem persistence for generated bundles, laid out as
``<work_items_path>/<ORIGINAL-KEY>/<phase>/<file>``. Re-running a phase
overwrites its files wholesale.
"""

import json
import re
import shutil
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from rich.console import Console

from .errors import PersistenceError
from .models import (
    EvaluationResult,
    Implementation,
    ImplementationResult,
    ValidationArtifact,
)
from .reports import (
    render_config_file,
    render_evaluation_summary,
    render_implementation_summary,
)

console = Console()

IMPLEMENTATION_PHASE = "implementation"
EVALUATION_PHASE = "evaluation"
PHASES = [IMPLEMENTATION_PHASE, EVALUATION_PHASE]

PRIMARY_FILES = {
    'code': 'solution.js',
    'documentation': 'document.md',
    'analysis': 'analysis.md',
    'process': 'process.md',
    'other': 'deliverable.txt',
}
VALIDATION_FILES = {
    'code': 'tests.js',
    'documentation': 'validation-checklist.md',
    'analysis': 'peer-review-criteria.md',
    'process': 'validation-plan.md',
    'other': 'validation.md',
}
CONFIG_FILES = {
    'code': 'package.json',
    'process': 'process-config.json',
}
DOCUMENTATION_FILE = 'README.md'
SUMMARY_FILE = 'implementation-summary.md'
EVALUATION_RESULTS_FILE = 'evaluation-results.json'
EVALUATION_SUMMARY_FILE = 'evaluation-summary.md'

RESERVED_FILES = set(PRIMARY_FILES.values()) | set(VALIDATION_FILES.values()) | set(CONFIG_FILES.values()) | {
    DOCUMENTATION_FILE,
    SUMMARY_FILE,
}


def primary_file_name(implementation_type: str) -> str:
    return PRIMARY_FILES.get(implementation_type, PRIMARY_FILES['other'])


def validation_file_name(implementation_type: str) -> str:
    return VALIDATION_FILES.get(implementation_type, VALIDATION_FILES['other'])


def safe_filename(name: str) -> str:
    """Reduce a model-supplied file name to a plain base name."""
    base = re.split(r"[\\/]", name)[-1].strip()
    if base in ('', '.', '..'):
        return 'supporting-file.txt'
    return base


class ArtifactStore:
    """Key/value file store scoped by original issue key and phase."""

    def __init__(self, base_path: str) -> None:
        self.base_path = Path(base_path)

    def phase_dir(self, key: str, phase: str) -> Path:
        if phase not in PHASES:
            raise ValueError(f"Unknown artifact phase: {phase}")
        return self.base_path / safe_filename(key) / phase

    def has_phase(self, key: str, phase: str) -> bool:
        return self.phase_dir(key, phase).is_dir()

    def write_files(self, key: str, phase: str, files: Dict[str, str]) -> List[str]:
        """Replace the files stored for one phase.

        Anything left from an earlier run of the phase is removed first.

        Args:
            key: Original issue key
            phase: ``implementation`` or ``evaluation``
            files: Mapping of file name to text content

        Returns:
            Names of the files written, in order

        Raises:
            PersistenceError: If the directory or any file cannot be written
        """
        directory = self.phase_dir(key, phase)
        written = []
        try:
            if directory.exists():
                shutil.rmtree(directory)
            directory.mkdir(parents=True, exist_ok=True)
            for name, content in files.items():
                path = directory / safe_filename(name)
                path.write_text(content, encoding='utf-8')
                written.append(path.name)
                console.print(f"[dim]Wrote {path} ({len(content)} chars)[/dim]")
        except OSError as e:
            raise PersistenceError(f"Failed to write {phase} artifacts for {key}: {e}") from e

        return written

    def read_files(self, key: str, phase: str) -> Dict[str, str]:
        """Read every file stored for one phase.

        Raises:
            PersistenceError: If the phase directory is missing or unreadable
        """
        directory = self.phase_dir(key, phase)
        if not directory.is_dir():
            raise PersistenceError(f"No {phase} artifacts found for {key} in {directory}")

        try:
            return {
                path.name: path.read_text(encoding='utf-8')
                for path in sorted(directory.iterdir())
                if path.is_file()
            }
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceError(f"Failed to read {phase} artifacts for {key}: {e}") from e

    def list_files(self, key: str) -> List[Tuple[str, str, int]]:
        """(phase, file name, size in bytes) for everything stored under ``key``."""
        entries = []
        for phase in PHASES:
            directory = self.phase_dir(key, phase)
            if directory.is_dir():
                for path in sorted(directory.iterdir()):
                    if path.is_file():
                        entries.append((phase, path.name, path.stat().st_size))
        return entries


def build_implementation_bundle(
    original_key: str,
    result: ImplementationResult,
    timestamp: Optional[str] = None,
) -> Dict[str, str]:
    """Lay out an implementation result as named files.

    Supporting files are reduced to base names; any that collide with a
    bundle file name are dropped.
    """
    implementation = result.implementation
    timestamp = timestamp or datetime.now().isoformat()

    files: Dict[str, str] = {primary_file_name(implementation.type): implementation.primary_deliverable}

    for name, content in implementation.supporting_files.items():
        filename = safe_filename(name)
        if filename in RESERVED_FILES:
            console.print(f"[yellow]Skipping supporting file {name}: name is reserved for the bundle[/yellow]")
            continue
        files[filename] = content

    if result.tests and result.tests.content:
        files[validation_file_name(implementation.type)] = result.tests.content

    if result.documentation:
        files[DOCUMENTATION_FILE] = result.documentation

    files[SUMMARY_FILE] = render_implementation_summary(
        original_key,
        result,
        timestamp,
        primary_file=primary_file_name(implementation.type),
        validation_file=validation_file_name(implementation.type),
    )

    if implementation.type in CONFIG_FILES:
        files[CONFIG_FILES[implementation.type]] = render_config_file(original_key, implementation, timestamp)

    return files


def save_implementation(store: ArtifactStore, original_key: str, result: ImplementationResult) -> List[str]:
    """Persist an implementation bundle; raises PersistenceError on failure."""
    console.print(f"[green]Creating implementation artifacts for {original_key}[/green]")
    files = build_implementation_bundle(original_key, result)
    written = store.write_files(original_key, IMPLEMENTATION_PHASE, files)
    result.files = files
    return written


def detect_implementation_type(file_names: List[str]) -> Optional[str]:
    for implementation_type, filename in PRIMARY_FILES.items():
        if filename in file_names:
            return implementation_type
    return None


def load_implementation_result(store: ArtifactStore, original_key: str) -> ImplementationResult:
    """Rebuild an ImplementationResult from a stored bundle.

    Raises:
        PersistenceError: If the bundle, its summary or its primary file is missing
    """
    files = store.read_files(original_key, IMPLEMENTATION_PHASE)
    if SUMMARY_FILE not in files:
        raise PersistenceError(f"Implementation summary not found for {original_key}")

    implementation_type = detect_implementation_type(list(files))
    if implementation_type is None:
        raise PersistenceError(f"Primary deliverable not found for {original_key}")

    tests = None
    validation_file = validation_file_name(implementation_type)
    if validation_file in files:
        tests = ValidationArtifact(type=implementation_type, content=files[validation_file], validation_type='Loaded')

    console.print(f"[blue]Loaded {implementation_type} implementation for {original_key} ({len(files)} files)[/blue]")
    return ImplementationResult(
        implementation=Implementation(
            type=implementation_type,
            title=f"Implementation for {original_key}",
            primary_deliverable=files[primary_file_name(implementation_type)],
            description="Loaded from stored implementation artifacts",
            usage_instructions=f"See {DOCUMENTATION_FILE} for usage instructions",
        ),
        tests=tests,
        documentation=files.get(DOCUMENTATION_FILE, ""),
        metadata={'original_issue': original_key, 'loaded_at': datetime.now().isoformat()},
        files=files,
    )


def save_evaluation(store: ArtifactStore, result: EvaluationResult) -> List[str]:
    """Persist raw evaluation JSON plus the rendered summary report."""
    files = {
        EVALUATION_RESULTS_FILE: json.dumps(result.to_dict(), indent=2),
        EVALUATION_SUMMARY_FILE: render_evaluation_summary(result),
    }
    return store.write_files(result.original_issue, EVALUATION_PHASE, files)
