"""Export pipeline: lookup, output binding, the pipeline and its task contract."""
from __future__ import annotations

from modex.export.binding import bind_output
from modex.export.config import DEFAULT_CONFIG_NAME, load_tasks, parse_tasks
from modex.export.lookup import find_by_type, iter_graph
from modex.export.pipeline import ExportPipeline, ExportResult, export
from modex.export.task import ExportTask

__all__ = [
    "find_by_type",
    "iter_graph",
    "bind_output",
    "ExportPipeline",
    "ExportResult",
    "export",
    "ExportTask",
    "load_tasks",
    "parse_tasks",
    "DEFAULT_CONFIG_NAME",
]
