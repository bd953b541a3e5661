"""Schema and data file I/O helpers (internal)."""

import json
from pathlib import Path
from typing import Any, Dict, List, Union


def load_json(path: Union[str, Path]) -> Any:
    """Load any JSON document from a file path."""
    with open(Path(path), "r", encoding="utf-8") as f:
        return json.load(f)


def load_schemas_from_path(path: Union[str, Path]) -> List[Dict[str, Any]]:
    """Load raw schema mappings from a JSON file.

    The file holds either a list of schema objects or ``{"schemas": [...]}``.
    The mappings are returned unvalidated; registration validates them.

    Raises:
        ValueError: If the document has neither shape.
    """
    data = load_json(path)
    if isinstance(data, dict) and "schemas" in data:
        data = data["schemas"]
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise ValueError(f"{path}: expected a list of schema objects or {{\"schemas\": [...]}}")
    return data
