#!/usr/bin/env python3
"""Example: Quickstart: modex

Export the example model, then reload the generator configuration and
follow its link back into the metamodel file.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install modex
"""
from __future__ import annotations

import tempfile
from pathlib import Path

import modex

SOURCE = Path(__file__).parent / "model" / "Example.mdl"


def main() -> None:
    print(f"modex version: {modex.__version__}")

    with tempfile.TemporaryDirectory() as tmp:
        out = Path(tmp)

        # Step 1: Write the metamodel and the generator configuration
        result = modex.export(SOURCE, out / "Example.ecore.yaml", out / "Example.genmodel.yaml")
        print(result.summary())

        # Step 2: Reload the configuration; the metamodel file loads on demand
        context = modex.ResourceContext()
        config = context.load(out / "Example.genmodel.yaml")
        gen_config = modex.find_by_type(config, "GenConfig")
        gen_package = gen_config.gen_packages[0]
        print(f"GenConfig {gen_config.label!r} -> {gen_package.package_def.resource.path.name}")

        # Step 3: Walk the generator entries
        for gen_classifier in gen_package.gen_classifiers:
            print(f"  {gen_classifier.kind.tag:<12} {gen_classifier.label}")

    # Step 4: Errors carry the failing stage and path
    try:
        modex.export(Path("missing.mdl"), Path("a.out"), Path("b.out"))
    except modex.ExportError as exc:
        print(f"Expected failure: {exc}")


if __name__ == "__main__":
    main()
