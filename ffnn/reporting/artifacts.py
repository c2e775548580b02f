"""Run artefact helpers."""

from __future__ import annotations

import json
import platform
import time
from pathlib import Path
from typing import Mapping

import numpy as np


def write_manifest(
    path: str | Path,
    *,
    config: Mapping[str, object],
    dataset_provenance: Mapping[str, object],
    network: Mapping[str, object],
    results: Mapping[str, object],
) -> str:
    """Write a JSON manifest capturing what was trained, on what, and how well."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    manifest = {
        "generated_at": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "config": config,
        "dataset": dict(dataset_provenance),
        "network": dict(network),
        "results": dict(results),
        "environment": {
            "python": platform.python_version(),
            "numpy": np.__version__,
        },
    }
    path.write_text(json.dumps(manifest, indent=2))
    return str(path)


__all__ = ["write_manifest"]
