"""The two-artifact export pipeline.

One run loads a model description, then for each of the two exported
kinds, in order:

1. finds the object of that kind in the source graph,
2. binds a fresh resource to the destination path,
3. moves the object into that resource,
4. saves the resource.

The move in step 3 detaches the object from the source graph, so the
metamodel must be exported before the generator configuration is looked
up: the second artifact can then never hold a copy of the first.  All
resources share one ``ResourceContext``, which is what lets references
from the configuration to the metamodel serialize as links into the
first file.

A failure stops the run at once.  Files already written stay on disk;
a re-run after fixing the cause writes identical output.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from modex.errors import IOTargetError, TaskConfigError
from modex.export.binding import bind_output
from modex.export.lookup import find_by_type
from modex.model.objects import ObjectKind
from modex.model.registry import TypeRegistry, UnknownTypeError
from modex.resource.context import Resource, ResourceContext

logger = logging.getLogger(__name__)

DEFAULT_METAMODEL_TYPE = "PackageDef"
DEFAULT_GENCONFIG_TYPE = "GenConfig"


@dataclass
class ExportResult:
    """Result of one pipeline run.

    Parameters
    ----------
    source:
        The model description that was loaded.
    outputs:
        ``(path, kind)`` for every written artifact, in write order.
    """

    source: Path
    outputs: list[tuple[Path, ObjectKind]] = field(default_factory=list)

    @property
    def paths(self) -> list[Path]:
        return [path for path, _ in self.outputs]

    def summary(self) -> str:
        """Return a one-line human-readable summary of this result."""
        written = ", ".join(f"{kind.tag} -> {path.name}" for path, kind in self.outputs)
        return f"Exported {self.source.name}: {written}"


class ExportPipeline:
    """Exports the metamodel and generator configuration of a model.

    Parameters
    ----------
    registry:
        Resolves the two type tags and loads artifacts.  A registry of the
        built-in classes is created when omitted.
    metamodel_type:
        Tag of the object written to the first output.
    genconfig_type:
        Tag of the object written to the second output.

    Raises
    ------
    TaskConfigError
        If either tag is unknown to the registry.
    """

    def __init__(
        self,
        registry: TypeRegistry | None = None,
        metamodel_type: str | ObjectKind = DEFAULT_METAMODEL_TYPE,
        genconfig_type: str | ObjectKind = DEFAULT_GENCONFIG_TYPE,
    ) -> None:
        self._registry = registry if registry is not None else TypeRegistry.with_builtins()
        try:
            self._metamodel_kind = self._registry.kind_of(metamodel_type)
            self._genconfig_kind = self._registry.kind_of(genconfig_type)
        except UnknownTypeError as exc:
            raise TaskConfigError(exc.args[0]) from exc

    @property
    def registry(self) -> TypeRegistry:
        return self._registry

    def run(
        self,
        source: Path | str,
        metamodel_output: Path | str,
        genconfig_output: Path | str,
    ) -> ExportResult:
        """Load ``source`` and write both artifacts.

        Raises
        ------
        LoadError
            If the source is missing, malformed, or not a model description.
        NotFoundError
            If an exported kind is absent from the source.
        IOTargetError
            If an output path cannot be prepared, or repeats the source or the
            other output.
        PersistError
            If an output cannot be serialized or written.
        """
        _check_distinct(source, metamodel_output, genconfig_output)
        context = ResourceContext(self._registry)
        source_resource = context.load(source, root_kind=ObjectKind.MODEL_UNIT)
        result = ExportResult(source=source_resource.path)

        # Order matters: the metamodel leaves the source graph before the
        # configuration is looked up.
        for kind, output in (
            (self._metamodel_kind, metamodel_output),
            (self._genconfig_kind, genconfig_output),
        ):
            written = self._export_one(context, source_resource, kind, output)
            result.outputs.append((written.path, kind))

        logger.info("%s", result.summary())
        return result

    def _export_one(
        self,
        context: ResourceContext,
        source: Resource,
        kind: ObjectKind,
        output: Path | str,
    ) -> Resource:
        obj = find_by_type(source, kind, self._registry)
        target = bind_output(context, output)
        target.contents.append(obj)
        target.save()
        logger.info("Wrote %s %r to %s", kind.tag, obj.label, target.path)
        return target


def _check_distinct(source: Path | str, metamodel_output: Path | str, genconfig_output: Path | str) -> None:
    seen = {Path(source).resolve(): "the source"}
    for output, role in ((metamodel_output, "the metamodel output"), (genconfig_output, "the genconfig output")):
        key = Path(output).resolve()
        if key in seen:
            raise IOTargetError(f"path is already bound to {seen[key]}", output)
        seen[key] = role


def export(
    source_path: Path | str,
    output_a_path: Path | str,
    output_b_path: Path | str,
    registry: TypeRegistry | None = None,
    metamodel_type: str | ObjectKind = DEFAULT_METAMODEL_TYPE,
    genconfig_type: str | ObjectKind = DEFAULT_GENCONFIG_TYPE,
) -> ExportResult:
    """Export the metamodel to ``output_a_path`` and the config to ``output_b_path``.

    Convenience wrapper around ``ExportPipeline(...).run(...)``.
    """
    pipeline = ExportPipeline(registry, metamodel_type, genconfig_type)
    return pipeline.run(source_path, output_a_path, output_b_path)
