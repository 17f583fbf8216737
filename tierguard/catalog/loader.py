from __future__ import annotations

import json
from pathlib import Path
from typing import Union

import yaml
from pydantic import ValidationError

from .models import CatalogSnapshot


class CatalogError(ValueError):
    """Raised when a catalog file cannot be parsed into a snapshot."""


def load_catalog(path: Union[str, Path]) -> CatalogSnapshot:
    """
    Load a catalog snapshot from a YAML (.yaml/.yml) or JSON file.

    Expected shape::

        projects:
          - {id: 1, name: Payments}
        instances:
          - {id: 10, url: https://billing.dev.example.com/info, environment: DEV, project_id: 1}
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"catalog not found: {p}")

    text = p.read_text("utf-8")
    try:
        if p.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise CatalogError(f"cannot parse catalog {p}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise CatalogError(f"catalog {p} must be a mapping, got {type(data).__name__}")

    try:
        return CatalogSnapshot.model_validate(data)
    except ValidationError as e:
        raise CatalogError(f"invalid catalog {p}: {e}") from e
