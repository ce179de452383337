"""
Utility script to write the OpenAPI schema of the FastAPI app to disk.

Usage:
    python -m task_api.generate_openapi [output_path]

The default output path is interfaces/openapi.json relative to the current
working directory. The 'tasks' and 'health' tag metadata are always present.
"""
from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .main import app, openapi_tags

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT = Path("interfaces") / "openapi.json"


def _ensure_tags(schema: Dict[str, Any]) -> None:
    """
    Add any tag from ``openapi_tags`` missing from the schema; existing tag
    definitions are left as they are.
    """
    existing_tags: List[Dict[str, Any]] = schema.get("tags", []) or []
    existing_names = {t.get("name") for t in existing_tags if isinstance(t, dict)}
    for tag in openapi_tags:
        if tag.get("name") not in existing_names:
            existing_tags.append(tag)
    if existing_tags:
        schema["tags"] = existing_tags


# PUBLIC_INTERFACE
def build_openapi_schema() -> Dict[str, Any]:
    """Return the app's OpenAPI schema with tag metadata filled in."""
    schema = app.openapi()
    _ensure_tags(schema)
    return schema


# PUBLIC_INTERFACE
def generate_openapi(output_path: Optional[Path] = None) -> Path:
    """Write the OpenAPI schema as pretty JSON and return the written path."""
    out_path = Path(output_path) if output_path else DEFAULT_OUTPUT
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open("w", encoding="utf-8") as f:
        json.dump(build_openapi_schema(), f, indent=2, ensure_ascii=False)
    logger.info("Wrote OpenAPI schema to %s", out_path)
    return out_path


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = list(sys.argv[1:] if argv is None else argv)
    generate_openapi(Path(args[0]) if args else None)


if __name__ == "__main__":
    main()
