"""Saving and loading FlowDraw diagrams.

A saved diagram is a flat JSON snapshot::

    {
        "nodes": [{"id", "kind", "label", "x", "y"}, ...],
        "connections": [{"id", "from", "to"}, ...],
        "timestamp": "<ISO-8601 save time>"
    }

There is no version field; format changes must stay additive.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from PySide6.QtCore import Property, QObject, QSettings, QUrl, Signal, Slot

from .constants import SNAPSHOT_FILE_PREFIX
from .errors import DocumentError
from .model import FlowchartModel

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DocumentManager(QObject):
    """Manager for saving and loading diagram snapshot files."""

    MAX_RECENT_DOCUMENTS = 8

    saveCompleted = Signal(str)  # Emitted with file path after successful save
    loadCompleted = Signal(str)  # Emitted with file path after successful load
    errorOccurred = Signal(str)  # Emitted with error message on failure
    recentDocumentsChanged = Signal()
    currentFilePathChanged = Signal()

    def __init__(
        self,
        model: FlowchartModel,
        settings: Optional[QSettings] = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        """Initialize DocumentManager.

        Args:
            model: The FlowchartModel to save from and load into.
            settings: Settings store for the recent documents list. Defaults
                to the per-user FlowDraw settings.
            clock: Returns the time recorded in saved snapshots.
        """
        super().__init__()
        self._model = model
        self._settings = settings if settings is not None else QSettings("FlowDraw", "FlowDraw")
        self._clock = clock
        self._current_file_path: str = ""
        self._recent_documents: List[str] = self._load_recent_documents()

    # --- Snapshots ----------------------------------------------------------
    def snapshot(self) -> Dict[str, Any]:
        """Return the current diagram as a timestamped snapshot."""
        data = self._model.to_dict()
        data["timestamp"] = self._clock().isoformat()
        return data

    def load_snapshot(self, data: Any) -> None:
        """Replace the diagram with a snapshot.

        Raises:
            DocumentError: If the snapshot is malformed.
        """
        self._model.from_dict(data)

    @Slot(result=str)
    def suggestedFileName(self) -> str:
        return f"{SNAPSHOT_FILE_PREFIX}-{self._clock().date().isoformat()}.json"

    # --- File I/O -----------------------------------------------------------
    def _normalize_file_path(self, file_path: str) -> str:
        """Convert file URLs into local paths."""
        if file_path.startswith("file:"):
            url = QUrl(file_path)
            file_path = url.toLocalFile() if url.isLocalFile() else url.path()
        return file_path

    @Slot(str, result=bool)
    def saveDocument(self, file_path: str) -> bool:
        """Save the diagram to a JSON snapshot file.

        Args:
            file_path: Destination path or file URL; ``.json`` is appended
                when missing.
        """
        file_path = self._normalize_file_path(file_path)
        if not file_path:
            self.errorOccurred.emit("No file path specified")
            return False
        if not file_path.endswith(".json"):
            file_path += ".json"

        try:
            with open(file_path, "w", encoding="utf-8") as f:
                json.dump(self.snapshot(), f, ensure_ascii=False, indent=2)
        except OSError as e:
            error_msg = f"Failed to save diagram: {e}"
            logger.error(error_msg)
            self.errorOccurred.emit(error_msg)
            return False

        self._set_current_file_path(file_path)
        self._add_to_recent(file_path)
        logger.info("Diagram saved to %s", file_path)
        self.saveCompleted.emit(file_path)
        return True

    @Slot(str, result=bool)
    def loadDocument(self, file_path: str) -> bool:
        """Load a diagram from a JSON snapshot file."""
        file_path = self._normalize_file_path(file_path)
        if not file_path:
            self.errorOccurred.emit("No file path specified")
            return False
        if not os.path.exists(file_path):
            self.errorOccurred.emit(f"File not found: {file_path}")
            return False

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            self.load_snapshot(data)
        except ValueError as e:
            # Covers JSONDecodeError, UnicodeDecodeError and oversized integer literals
            error_msg = f"Invalid diagram file format: {e}"
        except OSError as e:
            error_msg = f"Failed to load diagram: {e}"
        except DocumentError as e:
            error_msg = f"Corrupted diagram file: {e}"
        else:
            self._set_current_file_path(file_path)
            self._add_to_recent(file_path)
            logger.info("Diagram loaded from %s", file_path)
            self.loadCompleted.emit(file_path)
            return True

        logger.error(error_msg)
        self.errorOccurred.emit(error_msg)
        return False

    def _set_current_file_path(self, file_path: str) -> None:
        if file_path != self._current_file_path:
            self._current_file_path = file_path
            self.currentFilePathChanged.emit()

    @Property(str, notify=currentFilePathChanged)
    def currentFilePath(self) -> str:
        return self._current_file_path

    # --- Recent documents ---------------------------------------------------
    def _load_recent_documents(self) -> List[str]:
        stored = self._settings.value("recentDocuments", [])
        # QSettings may return a string if only one item, or None
        if stored is None:
            return []
        if isinstance(stored, str):
            stored = [stored] if stored else []
        if isinstance(stored, list):
            return [p for p in stored if p and os.path.exists(p)][:self.MAX_RECENT_DOCUMENTS]
        return []

    def _add_to_recent(self, file_path: str) -> None:
        if file_path in self._recent_documents:
            self._recent_documents.remove(file_path)
        self._recent_documents.insert(0, file_path)
        self._recent_documents = self._recent_documents[:self.MAX_RECENT_DOCUMENTS]
        self._settings.setValue("recentDocuments", self._recent_documents)
        self._settings.sync()
        self.recentDocumentsChanged.emit()

    @Property("QVariantList", notify=recentDocumentsChanged)
    def recentDocuments(self) -> List[str]:
        return list(self._recent_documents)
