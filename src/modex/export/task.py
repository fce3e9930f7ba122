"""Declarative export task.

An ``ExportTask`` names exactly one input file and two output files.
Build orchestrators key up-to-date checks and caching on these paths;
the task itself keeps no state between runs.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, ClassVar

from modex.errors import TaskConfigError
from modex.export.pipeline import (
    DEFAULT_GENCONFIG_TYPE,
    DEFAULT_METAMODEL_TYPE,
    ExportPipeline,
    ExportResult,
)
from modex.model.registry import TypeRegistry


@dataclass(frozen=True)
class ExportTask:
    """One declared export: a source description and its two artifacts.

    Parameters
    ----------
    source:
        The model description to load.
    metamodel_output:
        Destination of the metamodel artifact.
    genconfig_output:
        Destination of the generator configuration artifact.
    name:
        Task name, unique within a task file.
    metamodel_type:
        Tag of the object exported to ``metamodel_output``.
    genconfig_type:
        Tag of the object exported to ``genconfig_output``.
    """

    source: Path
    metamodel_output: Path
    genconfig_output: Path
    name: str = "exportModel"
    metamodel_type: str = DEFAULT_METAMODEL_TYPE
    genconfig_type: str = DEFAULT_GENCONFIG_TYPE

    group: ClassVar[str] = "Modeling"
    description: ClassVar[str] = "Exports the metamodel and generator configuration for a model"

    def __post_init__(self) -> None:
        for attr in ("source", "metamodel_output", "genconfig_output"):
            object.__setattr__(self, attr, Path(getattr(self, attr)))

    @property
    def input_files(self) -> tuple[Path, ...]:
        return (self.source,)

    @property
    def output_files(self) -> tuple[Path, ...]:
        return (self.metamodel_output, self.genconfig_output)

    def resolved(self, base: Path | str) -> ExportTask:
        """Return a copy with relative paths anchored at ``base``."""
        base = Path(base)
        return replace(
            self,
            source=base / self.source,
            metamodel_output=base / self.metamodel_output,
            genconfig_output=base / self.genconfig_output,
        )

    def check(self) -> None:
        """Verify that the three declared paths are distinct.

        Raises
        ------
        TaskConfigError
            If any two of the paths refer to the same file.
        """
        paths = [p.resolve() for p in (*self.input_files, *self.output_files)]
        if len(set(paths)) != len(paths):
            raise TaskConfigError(
                f"task {self.name!r} must declare three distinct paths",
                self.source,
            )

    def run(self, registry: TypeRegistry | None = None) -> ExportResult:
        """Check the declaration, then run the export pipeline once."""
        self.check()
        pipeline = ExportPipeline(registry, self.metamodel_type, self.genconfig_type)
        return pipeline.run(self.source, self.metamodel_output, self.genconfig_output)

    def describe(self) -> dict[str, Any]:
        """Return the task's declaration as a JSON-compatible dict."""
        return {
            "name": self.name,
            "group": self.group,
            "description": self.description,
            "inputs": [str(p) for p in self.input_files],
            "outputs": [str(p) for p in self.output_files],
        }
