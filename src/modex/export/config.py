"""Task file loading.

A task file is YAML with a single ``tasks`` list::

    tasks:
      - name: exportExample
        source: model/Example.mdl
        metamodel_output: build/model/Example.ecore.yaml
        genconfig_output: build/model/Example.genmodel.yaml

Relative paths are anchored at the directory holding the task file.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from modex.errors import TaskConfigError
from modex.export.task import ExportTask

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "modex.yml"

_REQUIRED_KEYS = ("source", "metamodel_output", "genconfig_output")
_OPTIONAL_KEYS = ("name", "metamodel_type", "genconfig_type")


def load_tasks(config_path: Path | str) -> list[ExportTask]:
    """Load and validate the tasks declared in ``config_path``.

    Raises
    ------
    TaskConfigError
        If the file is missing, is not valid YAML, or declares an
        incomplete or inconsistent task.
    """
    config_path = Path(config_path)
    if not config_path.is_file():
        raise TaskConfigError("configuration file not found", config_path)

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise TaskConfigError(f"invalid YAML: {exc}", config_path) from exc
    except OSError as exc:
        raise TaskConfigError(f"cannot read file: {exc}", config_path) from exc

    tasks = parse_tasks(data, base=config_path.parent, config_path=config_path)
    logger.debug("Loaded %d task(s) from %s", len(tasks), config_path)
    return tasks


def parse_tasks(
    data: Any,
    base: Path | str = ".",
    config_path: Path | str | None = None,
) -> list[ExportTask]:
    """Build tasks from an already-parsed task mapping.

    Parameters
    ----------
    data:
        The parsed YAML document.
    base:
        Directory that relative paths are anchored at.
    config_path:
        Reported in errors.
    """
    if not isinstance(data, dict) or not isinstance(data.get("tasks"), list):
        raise TaskConfigError("expected a mapping with a 'tasks' list", config_path)
    unknown = sorted(set(data) - {"tasks"})
    if unknown:
        raise TaskConfigError(f"unknown top-level key(s): {', '.join(unknown)}", config_path)
    if not data["tasks"]:
        raise TaskConfigError("no tasks declared", config_path)

    tasks: list[ExportTask] = []
    names: set[str] = set()
    for index, entry in enumerate(data["tasks"]):
        task = _parse_task(entry, index, config_path).resolved(base)
        if task.name in names:
            raise TaskConfigError(f"duplicate task name {task.name!r}", config_path)
        names.add(task.name)
        try:
            task.check()
        except TaskConfigError as exc:
            raise TaskConfigError(exc.message, config_path) from exc
        tasks.append(task)
    return tasks


def _parse_task(entry: Any, index: int, config_path: Path | str | None) -> ExportTask:
    where = f"task #{index + 1}"
    if not isinstance(entry, dict):
        raise TaskConfigError(f"{where} must be a mapping", config_path)

    unknown = sorted(set(entry) - set(_REQUIRED_KEYS) - set(_OPTIONAL_KEYS))
    if unknown:
        raise TaskConfigError(f"{where} has unknown key(s): {', '.join(unknown)}", config_path)
    missing = [key for key in _REQUIRED_KEYS if key not in entry]
    if missing:
        raise TaskConfigError(f"{where} is missing key(s): {', '.join(missing)}", config_path)

    for key, value in entry.items():
        if not isinstance(value, str) or not value.strip():
            raise TaskConfigError(f"{where}: {key!r} must be a non-empty string", config_path)

    return ExportTask(**entry)
