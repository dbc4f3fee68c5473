"""Read and write genogram documents as JSON files."""
from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

import structlog

from .models import GenogramDocument
from .store import DocumentError, GraphStore

logger = structlog.get_logger(__name__)


def dumps(document: GenogramDocument, indent: int | None = 2) -> str:
    return json.dumps(document.to_dict(), indent=indent, ensure_ascii=False)


def loads(text: str) -> GenogramDocument:
    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError as e:
        raise DocumentError(f"invalid JSON: {e}") from e
    return GraphStore.parse(data)


def save_document(document: GenogramDocument, path: str | Path) -> Path:
    """Write ``document`` to ``path``, replacing it atomically."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(dumps(document))
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise
    logger.debug("document_saved", path=str(path))
    return path


def load_document(path: str | Path) -> GenogramDocument:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise DocumentError(f"cannot read {path}: {e}") from e
    return loads(text)
