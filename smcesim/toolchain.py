"""Preparation of sketch builds: errors, manifests, device specs, arguments."""

from __future__ import annotations

from enum import IntEnum
from pathlib import Path
from typing import List, Union

from smcesim.config import SketchConfig
from smcesim.manifest import write_manifest
from smcesim.sketch import Sketch

_CONFIGURE_SCRIPT = "/RtResources/SMCE/share/CMake/Scripts/ConfigureSketch.cmake"


class ToolchainErrorCode(IntEnum):
    """Reasons a sketch build can fail."""

    RESDIR_ABSENT = 1
    RESDIR_FILE = 2
    RESDIR_EMPTY = 3
    CMAKE_NOT_FOUND = 4
    CMAKE_UNKNOWN_OUTPUT = 5
    CMAKE_FAILING = 6
    INVALID_PLUGIN_NAME = 7
    SKETCH_INVALID = 8
    CONFIGURE_FAILED = 9
    BUILD_FAILED = 10
    GENERIC = 255


_MESSAGES = {
    ToolchainErrorCode.RESDIR_ABSENT: "Resource directory does not exist",
    ToolchainErrorCode.RESDIR_EMPTY: "Resource directory empty",
    ToolchainErrorCode.RESDIR_FILE: "Resource directory is a file",
    ToolchainErrorCode.CMAKE_NOT_FOUND: "CMake not found in PATH",
    ToolchainErrorCode.INVALID_PLUGIN_NAME: 'Plugin name is ".", "..", or contains a forward slash',
    ToolchainErrorCode.SKETCH_INVALID: "Sketch path is invalid",
    ToolchainErrorCode.CONFIGURE_FAILED: "CMake configure failed",
    ToolchainErrorCode.BUILD_FAILED: "CMake build failed",
}


class ToolchainError(Exception):
    """A build step failed for the reason given by ``code``."""

    def __init__(self, code: ToolchainErrorCode) -> None:
        self.code = ToolchainErrorCode(code)
        self.message = _MESSAGES.get(self.code, "smce.toolchain error")
        super().__init__(self.message)


def process_libraries(config: SketchConfig) -> str:
    """Return the CMake argument listing the legacy preprocessing libraries."""
    entries = [
        f"{lib.name}@{lib.version}" if lib.version else lib.name
        for lib in config.legacy_preproc_libs
    ]
    return "-DPREPROC_REMOTE_LIBS=" + ";".join(entries)


def write_manifests(config: SketchConfig, tmpdir: Union[str, Path]) -> List[Path]:
    """Write one manifest per plugin into ``tmpdir/manifests``.

    Raises :class:`ToolchainError` for an invalid plugin name and
    :class:`OSError` when the directory cannot be created.
    """
    manifests_dir = Path(tmpdir) / "manifests"
    manifests_dir.mkdir(exist_ok=True)
    written = []
    for plugin in config.plugins:
        if plugin.name in (".", "..") or "/" in plugin.name:
            raise ToolchainError(ToolchainErrorCode.INVALID_PLUGIN_NAME)
        written.append(write_manifest(plugin, manifests_dir / f"{plugin.name}.cmake"))
    return written


def write_devices_specs(config: SketchConfig, tmpdir: Union[str, Path]) -> Path:
    """Write ``Devices.cmake`` requesting bindings for the sketch's devices."""
    path = Path(tmpdir) / "Devices.cmake"
    lines = ["# HSD generated", "include (BindGen)"]
    lines.extend(f"smce_bindgen_sketch ({spec.full_string})" for spec in config.genbind_devices)
    with path.open("w", encoding="utf-8", newline="\n") as handle:
        handle.write("\n".join(lines) + "\n")
    return path


class Toolchain:
    """Compilation environment for sketches, rooted at a resources directory."""

    def __init__(self, resource_dir: Union[str, Path]) -> None:
        self._resource_dir = Path(resource_dir)
        self._cmake_path = "cmake"

    @property
    def resource_dir(self) -> Path:
        return self._resource_dir

    @property
    def cmake_path(self) -> str:
        return self._cmake_path

    def check_resource_dir(self) -> Path:
        """Check that the resources directory exists and is a non-empty directory."""
        path = self._resource_dir
        if not path.exists():
            raise ToolchainError(ToolchainErrorCode.RESDIR_ABSENT)
        if not path.is_dir():
            raise ToolchainError(ToolchainErrorCode.RESDIR_FILE)
        if next(path.iterdir(), None) is None:
            raise ToolchainError(ToolchainErrorCode.RESDIR_EMPTY)
        return path

    def prepare(self, sketch: Sketch) -> Path:
        """Create the sketch's build directory and write its generated inputs.

        Returns the build directory, also recorded as ``sketch.tmpdir``.
        """
        sketch.compiled = False
        if not sketch.source.exists():
            raise ToolchainError(ToolchainErrorCode.SKETCH_INVALID)
        if not sketch.config.fqbn:
            raise ToolchainError(ToolchainErrorCode.SKETCH_INVALID)

        tmpdir = self._resource_dir / "tmp" / sketch.uuid.to_hex()
        sketch.tmpdir = tmpdir
        tmpdir.mkdir(parents=True, exist_ok=True)
        write_devices_specs(sketch.config, tmpdir)
        write_manifests(sketch.config, tmpdir)
        return tmpdir

    def configure_arguments(self, sketch: Sketch) -> List[str]:
        """Arguments for the CMake script that configures the sketch's build."""
        return [
            f"-DSMCE_DIR={self._resource_dir}",
            f"-DSKETCH_HEXID={sketch.uuid.to_hex()}",
            f"-DSKETCH_FQBN={sketch.config.fqbn}",
            f"-DSKETCH_PATH={sketch.source.absolute().as_posix()}",
            process_libraries(sketch.config),
            "-P",
            f"{self._resource_dir}{_CONFIGURE_SCRIPT}",
        ]