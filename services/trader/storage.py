"""JSON persistence for durable trader state (ledger, block list)."""

import logging
import os
from pathlib import Path
from typing import TypeVar

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class StorageError(Exception):
    """A state file could not be read or written."""


class JsonStore:
    """Reads and writes pydantic models as JSON files.

    A missing file is not an error: it is created with the model's default
    shape on first load.
    """

    def load(self, path: str | Path, model: type[M]) -> M:
        path = Path(path)
        if not path.exists():
            default = model()
            self.save(path, default)
            logger.info("Created %s with default contents", path)
            return default
        try:
            return model.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            raise StorageError(f"Could not read {path}: {e}") from e

    def save(self, path: str | Path, data: BaseModel) -> None:
        """Write atomically: the previous file survives a crash mid-write."""
        path = Path(path)
        tmp = path.with_suffix(path.suffix + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(data.model_dump_json(indent=2), encoding="utf-8")
            os.replace(tmp, path)
        except OSError as e:
            raise StorageError(f"Could not write {path}: {e}") from e
