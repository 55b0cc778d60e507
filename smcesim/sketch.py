"""A sketch: source location, build configuration and build state."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Optional, Union

from smcesim.config import SketchConfig
from smcesim.identifiers import Uuid


class Sketch:
    """An Arduino sketch to be compiled and run.

    The build directory recorded in ``tmpdir`` is removed by :meth:`cleanup`,
    which also runs when the sketch is used as a context manager.
    """

    def __init__(self, source: Union[str, Path], config: SketchConfig) -> None:
        self._uuid = Uuid.generate()
        self._source = Path(source)
        self._config = config
        self.tmpdir: Optional[Path] = None
        self.executable: Optional[Path] = None
        self.compiled = False

    @property
    def source(self) -> Path:
        return self._source

    @property
    def config(self) -> SketchConfig:
        return self._config

    @property
    def uuid(self) -> Uuid:
        return self._uuid

    @property
    def is_compiled(self) -> bool:
        return self.compiled

    def cleanup(self) -> None:
        """Remove the build directory, if any, ignoring errors."""
        if self.tmpdir is not None:
            shutil.rmtree(self.tmpdir, ignore_errors=True)
            self.tmpdir = None

    def __enter__(self) -> "Sketch":
        return self

    def __exit__(self, *args) -> None:
        self.cleanup()

    def __repr__(self) -> str:
        return f"Sketch(source={str(self._source)!r}, uuid={self._uuid.to_hex()})"