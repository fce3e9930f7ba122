"""Error taxonomy for the export pipeline.

Every failure the pipeline surfaces derives from ``ExportError`` and
carries the ``stage`` that failed and the ``path`` involved, so a build
log alone is enough to diagnose the problem.

======================  ===========  =======================================
Error                   Stage        Meaning
======================  ===========  =======================================
``LoadError``           ``load``     source missing, unparseable, or wrong
                                     root type
``NotFoundError``       ``lookup``   expected typed object absent
``IOTargetError``       ``bind``     output destination cannot be prepared
``PersistError``        ``persist``  serialization or write failure
``TaskConfigError``     ``config``   task declaration is incomplete or
                                     inconsistent
======================  ===========  =======================================
"""
from __future__ import annotations

from pathlib import Path


class ExportError(Exception):
    """Base class for all pipeline failures.

    Parameters
    ----------
    message:
        Human-readable description of the failure.
    path:
        The file the failing stage was working on, if any.
    """

    stage: str = "export"

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        self.message = message
        self.path = Path(path) if path is not None else None
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.path is None:
            return f"[{self.stage}] {self.message}"
        return f"[{self.stage}] {self.path}: {self.message}"


class LoadError(ExportError):
    """The source could not be read, parsed, linked, or has the wrong root."""

    stage = "load"


class NotFoundError(ExportError, LookupError):
    """No object of the requested type exists in the searched graph.

    Parameters
    ----------
    type_tag:
        The tag that was searched for.
    path:
        The resource that was searched, if known.
    """

    stage = "lookup"

    def __init__(self, type_tag: str, path: Path | str | None = None) -> None:
        self.type_tag = type_tag
        super().__init__(f"no object of type {type_tag!r} found", path)


class IOTargetError(ExportError):
    """An output destination cannot be prepared for writing."""

    stage = "bind"


class PersistError(ExportError):
    """Serializing or writing an output container failed."""

    stage = "persist"


class TaskConfigError(ExportError):
    """A task declaration is missing paths or declares clashing ones."""

    stage = "config"
