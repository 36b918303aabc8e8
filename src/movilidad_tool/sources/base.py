"""Fuentes de muestras: rutas requeridas y carga validada."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from movilidad_tool.model import Sample

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourcePaths:
    """Root directory of an export."""

    root: Path

    def require(self, *parts: str) -> Path:
        """Return ``root / parts``, raising FileNotFoundError if it is missing."""
        path = self.root.joinpath(*parts)
        if not path.exists():
            raise FileNotFoundError(str(path))
        return path


class SampleSource(ABC):
    """Export that yields health samples."""

    def __init__(self, paths: SourcePaths) -> None:
        self._paths = paths

    @abstractmethod
    def validate(self) -> None:
        """Raise FileNotFoundError if the export layout is incomplete."""

    @abstractmethod
    def read_all(self) -> list[Sample]:
        """Return every sample the source holds, ordered by start."""

    def load(self) -> list[Sample]:
        """Validate the export, then read it."""
        self.validate()
        samples = self.read_all()
        logger.info(
            "Loaded %d samples from %s", len(samples), self._paths.root
        )
        return samples
