"""
Coverage dataset loading.

Reads the per-file coverage produced by a test runner, either an Istanbul
``coverage-summary.json`` or an LCOV ``lcov.info`` file, and tags each file
with its architectural layer.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from quality_gate.core.exceptions import CoverageDataError
from quality_gate.models import LAYERS, METRICS, CoverageMetric, Layer


logger = logging.getLogger(__name__)

SUMMARY_FILE_NAME = "coverage-summary.json"
LCOV_FILE_NAME = "lcov.info"


@dataclass
class MetricCounts:
    """Raw total/covered counts of one metric."""
    total: int = 0
    covered: int = 0


@dataclass
class FileCoverageData:
    """Raw coverage counts of one source file."""
    file_path: str
    layer: Layer
    lines: MetricCounts = field(default_factory=MetricCounts)
    functions: MetricCounts = field(default_factory=MetricCounts)
    branches: MetricCounts = field(default_factory=MetricCounts)
    statements: MetricCounts = field(default_factory=MetricCounts)
    uncovered_lines: List[int] = field(default_factory=list)

    def get(self, metric: CoverageMetric) -> MetricCounts:
        return getattr(self, CoverageMetric(metric).value)


CoverageDataset = List[FileCoverageData]


def determine_layer(file_path: str) -> Optional[Layer]:
    """Return the layer named by a path segment, or None for files outside the layers."""
    normalized = "/" + str(file_path).replace("\\", "/").lstrip("/")
    for layer in LAYERS:
        if f"/{layer.value}/" in normalized:
            return layer
    return None


def _counts(data: Any) -> MetricCounts:
    if not isinstance(data, dict):
        return MetricCounts()
    try:
        return MetricCounts(total=int(data.get("total") or 0), covered=int(data.get("covered") or 0))
    except (TypeError, ValueError) as e:
        raise CoverageDataError(f"Invalid coverage counts: {data}") from e


def parse_coverage_summary(data: Dict[str, Any]) -> CoverageDataset:
    """
    Build a dataset from a parsed Istanbul coverage summary.

    Args:
        data: Mapping of file path to ``{lines, functions, branches, statements}``

    Returns:
        Files that belong to one of the four layers; the ``total`` entry is ignored
    """
    if not isinstance(data, dict):
        raise CoverageDataError("Coverage summary must be a JSON object")

    dataset: CoverageDataset = []
    for file_path, entry in data.items():
        if file_path == "total" or not isinstance(entry, dict):
            continue
        layer = determine_layer(file_path)
        if layer is None:
            logger.debug(f"Ignoring coverage for {file_path}: not in a known layer")
            continue
        dataset.append(FileCoverageData(
            file_path=file_path,
            layer=layer,
            **{metric.value: _counts(entry.get(metric.value)) for metric in METRICS}
        ))
    return dataset


def _record_value(line: str, prefix: str) -> int:
    try:
        return int(line[len(prefix):].strip())
    except ValueError as e:
        raise CoverageDataError(f"Invalid LCOV record: {line}") from e


def parse_lcov(content: str) -> CoverageDataset:
    """
    Build a dataset from LCOV text.

    Statements mirror lines since LCOV has no statement records. ``DA``
    records with zero hits become the file's uncovered lines.
    """
    dataset: CoverageDataset = []
    current: Optional[FileCoverageData] = None

    for raw_line in content.splitlines():
        line = raw_line.strip()
        if line.startswith("SF:"):
            file_path = line[3:]
            layer = determine_layer(file_path)
            current = FileCoverageData(file_path=file_path, layer=layer) if layer else None
            if current is None:
                logger.debug(f"Ignoring coverage for {file_path}: not in a known layer")
            continue

        if current is None:
            continue

        if line.startswith("LF:"):
            current.lines.total = _record_value(line, "LF:")
        elif line.startswith("LH:"):
            current.lines.covered = _record_value(line, "LH:")
        elif line.startswith("FNF:"):
            current.functions.total = _record_value(line, "FNF:")
        elif line.startswith("FNH:"):
            current.functions.covered = _record_value(line, "FNH:")
        elif line.startswith("BRF:"):
            current.branches.total = _record_value(line, "BRF:")
        elif line.startswith("BRH:"):
            current.branches.covered = _record_value(line, "BRH:")
        elif line.startswith("DA:"):
            parts = line[3:].split(",")
            if len(parts) < 2:
                raise CoverageDataError(f"Invalid LCOV record: {line}")
            try:
                line_number, hits = int(parts[0]), int(parts[1])
            except ValueError as e:
                raise CoverageDataError(f"Invalid LCOV record: {line}") from e
            if hits == 0:
                current.uncovered_lines.append(line_number)
        elif line == "end_of_record":
            current.statements = MetricCounts(current.lines.total, current.lines.covered)
            dataset.append(current)
            current = None

    if current is not None:
        current.statements = MetricCounts(current.lines.total, current.lines.covered)
        dataset.append(current)

    return dataset


def load_coverage_dataset(path: Union[str, Path, None]) -> CoverageDataset:
    """
    Load a coverage dataset from a summary JSON, an LCOV file or a coverage directory.

    A directory is searched for ``coverage-summary.json`` first, then
    ``lcov.info``. A missing path yields an empty dataset.

    Raises:
        CoverageDataError: If the file exists but cannot be parsed
    """
    if path is None:
        return []

    coverage_path = Path(path)
    if coverage_path.is_dir():
        for candidate in (SUMMARY_FILE_NAME, LCOV_FILE_NAME):
            if (coverage_path / candidate).is_file():
                coverage_path = coverage_path / candidate
                break
        else:
            logger.warning(f"No coverage data found in {path}, using empty coverage")
            return []

    if not coverage_path.is_file():
        logger.warning(f"Coverage file {coverage_path} not found, using empty coverage")
        return []

    try:
        content = coverage_path.read_text(encoding="utf-8")
    except OSError as e:
        raise CoverageDataError(f"Failed to read coverage data {coverage_path}: {e}") from e

    if coverage_path.suffix == ".json":
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise CoverageDataError(f"Invalid coverage summary {coverage_path}: {e}") from e
        dataset = parse_coverage_summary(data)
    else:
        dataset = parse_lcov(content)

    logger.info(f"Loaded coverage for {len(dataset)} files from {coverage_path}")
    return dataset
