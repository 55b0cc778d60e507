"""Rendering of plugin manifests as CMake scripts."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Union

from smcesim.config import PluginDefaults, PluginManifest

_DEFAULTS_NAMES = {
    PluginDefaults.ARDUINO: "ARDUINO",
    PluginDefaults.SINGLE_DIR: "SINGLE",
    PluginDefaults.C: "C",
    PluginDefaults.NONE: "",
    PluginDefaults.CMAKE: "CMAKE",
}


def cmake_list(items: Iterable[object]) -> str:
    """Join items into a CMake list, separated by semicolons."""
    return ";".join(str(item) for item in items)


def render_manifest(manifest: PluginManifest) -> str:
    """Return the CMake script describing a plugin manifest."""
    lines = [
        "# HSD generated",
        "include_guard ()",
        "",
        f'set (PLUGIN_NAME "{manifest.name}")',
        f'set (PLUGIN_VERSION "{manifest.version}")',
        f"set (PLUGIN_DEPENDS {cmake_list(manifest.depends)})",
        f"set (PLUGIN_NEEDS_DEVICES {cmake_list(manifest.needs_devices)})",
        f'set (PLUGIN_DEV "{int(bool(manifest.development))}")',
        f'set (PLUGIN_URI "{manifest.uri}")',
        f'set (PLUGIN_PATCH_URI "{manifest.patch_uri}")',
        f'set (PLUGIN_DEFAULTS "{_DEFAULTS_NAMES[manifest.defaults]}")',
        f"set (PLUGIN_INCDIRS {cmake_list(manifest.incdirs)})",
        f"set (PLUGIN_SOURCES {cmake_list(manifest.sources)})",
        f"set (PLUGIN_LINKDIRS {cmake_list(manifest.linkdirs)})",
        f"set (PLUGIN_LINKLIBS {cmake_list(manifest.linklibs)})",
    ]
    return "\n".join(lines) + "\n"


def write_manifest(manifest: PluginManifest, location: Union[str, Path]) -> Path:
    """Write the manifest script to ``location``, creating parent directories.

    Raises :class:`OSError` if the directories or the file cannot be created.
    """
    path = Path(location)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="\n") as handle:
        handle.write(render_manifest(manifest))
    return path