"""File-backed loop source used by the CLI."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from ..core.interfaces import LoopSource
from ..core.models import Loop
from .parser import LoopParseError, LoopParser

LOGGER = logging.getLogger(__name__)


class JsonFileLoopSource(LoopSource):
    """Read loops from a JSON export of the loop store.

    The file holds either a list of loop documents or an object with a
    ``loops`` list. The file is read on every call so edits are picked up.
    """

    def __init__(self, path: Path | str, *, parser: LoopParser | None = None) -> None:
        self._path = Path(path)
        self._parser = parser or LoopParser()

    @property
    def path(self) -> Path:
        return self._path

    def list_loops(self) -> list[Loop]:
        """Return every loop in the file, in file order."""
        document = self._read()
        records = document.get("loops") if isinstance(document, dict) else document
        if not isinstance(records, list):
            raise LoopParseError(f"{self._path} does not contain a list of loops")
        loops = self._parser.parse_many(records)
        LOGGER.debug("Loaded %s loop(s) from %s", len(loops), self._path)
        return loops

    def _read(self) -> Any:
        try:
            with self._path.open(encoding="utf-8") as handle:
                return json.load(handle)
        except json.JSONDecodeError as exc:
            raise LoopParseError(f"{self._path} is not valid JSON") from exc


__all__ = ["JsonFileLoopSource"]
