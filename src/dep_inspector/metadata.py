"""Loading of pre-resolved package metadata (``cargo metadata`` JSON)."""

import json
import sys
from pathlib import Path
from typing import Any, Union

from pydantic import ValidationError

from dep_inspector.errors import MetadataError
from dep_inspector.models import CargoMetadata


def parse_metadata(data: Any) -> CargoMetadata:
    """Validate raw decoded JSON into a ``CargoMetadata`` model."""
    try:
        metadata = CargoMetadata.model_validate(data)
    except ValidationError as e:
        raise MetadataError(f"invalid metadata: {e.error_count()} validation error(s)") from e
    if metadata.resolve is None:
        raise MetadataError("metadata missing resolve data")
    return metadata


def load_metadata(path: Union[str, Path]) -> CargoMetadata:
    """Read metadata JSON from a file, or from stdin when ``path`` is ``-``."""
    try:
        if str(path) == "-":
            raw = sys.stdin.read()
        else:
            raw = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise MetadataError(f"failed to read metadata from {path}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise MetadataError(f"metadata is not valid JSON (line {e.lineno})") from e
    return parse_metadata(data)
