"""Output binding: fresh, empty resources tied to destination paths."""
from __future__ import annotations

import logging
import os
from pathlib import Path

from modex.errors import IOTargetError
from modex.resource.context import Resource, ResourceContext

logger = logging.getLogger(__name__)


def bind_output(context: ResourceContext, path: Path | str) -> Resource:
    """Create an empty resource for ``path`` inside ``context``.

    The parent directory is created right away so that an unusable
    destination is reported before anything is moved into the resource.

    Raises
    ------
    IOTargetError
        If the parent directory cannot be created or is not writable, if
        ``path`` is an existing directory, or if ``path`` is already bound
        in ``context``.
    """
    path = Path(path)
    if context.get_resource(path) is not None:
        raise IOTargetError("path is already bound in this context", path)
    if path.is_dir():
        raise IOTargetError("path is an existing directory", path)

    parent = path.resolve().parent
    try:
        parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise IOTargetError(f"cannot create directory {parent}: {exc.strerror or exc}", path) from exc
    if not os.access(parent, os.W_OK):
        raise IOTargetError(f"directory {parent} is not writable", path)

    resource = context.create_resource(path)
    logger.debug("Bound output %s", resource.path)
    return resource
