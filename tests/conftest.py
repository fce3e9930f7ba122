"""Shared test fixtures for modex.

Fixtures defined here are available to all tests in the suite without
needing an explicit import. Add project-wide fixtures here; keep
domain-specific fixtures close to the tests that use them.
"""
from __future__ import annotations

from pathlib import Path

import pytest

EXAMPLE_SOURCE = """\
// Example model used across the test suite
@GenModel(modelDirectory="/example/src-gen", complianceLevel="11.0")
package com.example.Example

class Model {
    contains Greeting[] greetings opposite model
}

class Greeting {
    String name
    int[?] priority
    Mood mood
    container Model model opposite greetings
    refers Greeting[] related
}

enum Mood {
    HAPPY as "happy"
    NEUTRAL = 5
    SAD
}

type Timestamp wraps java.util.Date
"""

# A previously written artifact whose ModelUnit root holds no PackageDef.
SOURCE_WITHOUT_PACKAGE = """\
format: modex-artifact/1
contents:
- kind: ModelUnit
  name: Empty
  elements:
  - kind: GenConfig
    model_name: Empty
"""


@pytest.fixture()
def package_name() -> str:
    """Return the importable package name for assertions."""
    return "modex"


@pytest.fixture()
def expected_version() -> str:
    """Return the current expected version string.

    Update this fixture when cutting a release so that the version
    test immediately catches stale ``__version__`` values.
    """
    return "0.1.0"


@pytest.fixture()
def example_source() -> str:
    """Return the text of the example model description."""
    return EXAMPLE_SOURCE


@pytest.fixture()
def example_file(tmp_path: Path) -> Path:
    """Write the example model description to a temporary file."""
    path = tmp_path / "Example.mdl"
    path.write_text(EXAMPLE_SOURCE, encoding="utf-8")
    return path


@pytest.fixture()
def source_without_package(tmp_path: Path) -> Path:
    """Write a source whose graph holds a GenConfig but no PackageDef."""
    path = tmp_path / "Empty.yaml"
    path.write_text(SOURCE_WITHOUT_PACKAGE, encoding="utf-8")
    return path
