import pytest

from smcesim.config import PluginDefaults, PluginManifest
from smcesim.manifest import cmake_list, render_manifest, write_manifest


def _sample_manifest(**overrides):
    values = dict(
        name="MyPlugin",
        version="1.2.3",
        depends=["Base", "Util"],
        needs_devices=["Sensor"],
        uri="file:///tmp/plugin",
        patch_uri="file:///tmp/patch",
        defaults=PluginDefaults.ARDUINO,
        incdirs=["include"],
        sources=["src/a.cpp", "src/b.cpp"],
        linkdirs=["lib"],
        linklibs=["m", "pthread"],
        development=True,
    )
    values.update(overrides)
    return PluginManifest(**values)


def test_cmake_list_joins_with_semicolons():
    assert cmake_list(["a", "b", "c"]) == "a;b;c"


def test_cmake_list_single_and_empty():
    assert cmake_list(["only"]) == "only"
    assert cmake_list([]) == ""


def test_render_header_lines():
    lines = render_manifest(_sample_manifest()).split("\n")
    assert lines[0] == "# HSD generated"
    assert lines[1] == "include_guard ()"
    assert lines[2] == ""


def test_render_contains_fields():
    manifest = _sample_manifest()
    text = render_manifest(manifest)
    assert f'set (PLUGIN_NAME "{manifest.name}")\n' in text
    assert f'set (PLUGIN_VERSION "{manifest.version}")\n' in text
    assert f"set (PLUGIN_DEPENDS {cmake_list(manifest.depends)})\n" in text
    assert f"set (PLUGIN_SOURCES {cmake_list(manifest.sources)})\n" in text
    assert f"set (PLUGIN_LINKLIBS {cmake_list(manifest.linklibs)})\n" in text
    assert f'set (PLUGIN_URI "{manifest.uri}")\n' in text
    assert f'set (PLUGIN_PATCH_URI "{manifest.patch_uri}")\n' in text


def test_render_development_flag_is_numeric():
    assert 'set (PLUGIN_DEV "1")' in render_manifest(_sample_manifest(development=True))
    assert 'set (PLUGIN_DEV "0")' in render_manifest(_sample_manifest(development=False))


@pytest.mark.parametrize(
    "defaults, name",
    [
        (PluginDefaults.ARDUINO, "ARDUINO"),
        (PluginDefaults.SINGLE_DIR, "SINGLE"),
        (PluginDefaults.C, "C"),
        (PluginDefaults.NONE, ""),
        (PluginDefaults.CMAKE, "CMAKE"),
    ],
)
def test_render_defaults_names(defaults, name):
    text = render_manifest(_sample_manifest(defaults=defaults))
    assert f'set (PLUGIN_DEFAULTS "{name}")\n' in text


def test_render_empty_lists_leave_empty_set():
    text = render_manifest(PluginManifest(name="p"))
    assert "set (PLUGIN_DEPENDS )\n" in text
    assert "set (PLUGIN_LINKDIRS )\n" in text


def test_render_field_order():
    text = render_manifest(_sample_manifest())
    keys = [
        "PLUGIN_NAME",
        "PLUGIN_VERSION",
        "PLUGIN_DEPENDS",
        "PLUGIN_NEEDS_DEVICES",
        "PLUGIN_DEV",
        "PLUGIN_URI",
        "PLUGIN_PATCH_URI",
        "PLUGIN_DEFAULTS",
        "PLUGIN_INCDIRS",
        "PLUGIN_SOURCES",
        "PLUGIN_LINKDIRS",
        "PLUGIN_LINKLIBS",
    ]
    positions = [text.index(f"set ({key} ") for key in keys]
    assert positions == sorted(positions)
    assert text.endswith(")\n")


def test_write_manifest_creates_parents_and_matches_render(tmp_path):
    manifest = _sample_manifest()
    target = tmp_path / "deep" / "manifests" / "MyPlugin.cmake"
    result = write_manifest(manifest, target)
    assert result == target
    assert target.read_text(encoding="utf-8") == render_manifest(manifest)


def test_write_manifest_overwrites(tmp_path):
    target = tmp_path / "p.cmake"
    write_manifest(_sample_manifest(name="First"), target)
    write_manifest(_sample_manifest(name="Second"), str(target))
    content = target.read_text(encoding="utf-8")
    assert 'set (PLUGIN_NAME "Second")' in content
    assert "First" not in content


def test_write_manifest_parent_is_file_raises(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("x", encoding="utf-8")
    with pytest.raises(OSError):
        write_manifest(_sample_manifest(), blocker / "sub" / "p.cmake")