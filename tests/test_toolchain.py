import pytest

from smcesim.config import ArduinoLibrary, PluginManifest, SketchConfig
from smcesim.device_spec import BoardDeviceSpecification
from smcesim.sketch import Sketch
from smcesim.toolchain import (
    Toolchain,
    ToolchainError,
    ToolchainErrorCode,
    process_libraries,
    write_devices_specs,
    write_manifests,
)

SPEC = BoardDeviceSpecification(full_string='"Dev" "1" "u8 x"', name="Dev", r8_count=1)


def test_error_message_from_code():
    err = ToolchainError(ToolchainErrorCode.INVALID_PLUGIN_NAME)
    assert str(err) == 'Plugin name is ".", "..", or contains a forward slash'
    assert err.code is ToolchainErrorCode.INVALID_PLUGIN_NAME


def test_error_message_default():
    assert ToolchainError(ToolchainErrorCode.GENERIC).message == "smce.toolchain error"


def test_error_code_values():
    assert ToolchainErrorCode(1) is ToolchainErrorCode.RESDIR_ABSENT
    assert ToolchainErrorCode(255) is ToolchainErrorCode.GENERIC
    assert ToolchainError(ToolchainErrorCode(1)).message == "Resource directory does not exist"


def test_process_libraries_empty():
    assert process_libraries(SketchConfig()) == "-DPREPROC_REMOTE_LIBS="


def test_process_libraries_with_versions():
    config = SketchConfig(
        legacy_preproc_libs=[ArduinoLibrary("Servo"), ArduinoLibrary("MQTT", "2.5.0")]
    )
    assert process_libraries(config) == "-DPREPROC_REMOTE_LIBS=Servo;MQTT@2.5.0"


def test_write_manifests(tmp_path):
    config = SketchConfig(plugins=[PluginManifest(name="alpha"), PluginManifest(name="beta")])
    paths = write_manifests(config, tmp_path)
    assert [p.name for p in paths] == ["alpha.cmake", "beta.cmake"]
    assert all(p.parent == tmp_path / "manifests" for p in paths)
    assert 'set (PLUGIN_NAME "alpha")' in paths[0].read_text()


@pytest.mark.parametrize("name", [".", "..", "a/b"])
def test_write_manifests_invalid_name(tmp_path, name):
    config = SketchConfig(plugins=[PluginManifest(name=name)])
    with pytest.raises(ToolchainError) as info:
        write_manifests(config, tmp_path)
    assert info.value.code is ToolchainErrorCode.INVALID_PLUGIN_NAME


def test_write_manifests_missing_parent(tmp_path):
    with pytest.raises(OSError):
        write_manifests(SketchConfig(), tmp_path / "missing" / "deeper")


def test_write_devices_specs(tmp_path):
    path = write_devices_specs(SketchConfig(genbind_devices=[SPEC]), tmp_path)
    assert path.read_text() == (
        "# HSD generated\ninclude (BindGen)\n" f"smce_bindgen_sketch ({SPEC.full_string})\n"
    )


def test_check_resource_dir_absent(tmp_path):
    with pytest.raises(ToolchainError) as info:
        Toolchain(tmp_path / "nothing").check_resource_dir()
    assert info.value.code is ToolchainErrorCode.RESDIR_ABSENT


def test_check_resource_dir_file(tmp_path):
    target = tmp_path / "file"
    target.write_text("x")
    with pytest.raises(ToolchainError) as info:
        Toolchain(target).check_resource_dir()
    assert info.value.code is ToolchainErrorCode.RESDIR_FILE


def test_check_resource_dir_empty(tmp_path):
    with pytest.raises(ToolchainError) as info:
        Toolchain(tmp_path).check_resource_dir()
    assert info.value.code is ToolchainErrorCode.RESDIR_EMPTY


def test_check_resource_dir_ok(tmp_path):
    (tmp_path / "RtResources").mkdir()
    assert Toolchain(tmp_path).check_resource_dir() == tmp_path


def test_default_cmake_path(tmp_path):
    assert Toolchain(tmp_path).cmake_path == "cmake"


def _sketch(tmp_path, fqbn="arduino:avr:nano", **kwargs):
    source = tmp_path / "blink.ino"
    source.write_text("void setup() {}\nvoid loop() {}\n")
    return Sketch(source, SketchConfig(fqbn=fqbn, **kwargs))


def test_prepare_missing_source(tmp_path):
    sketch = Sketch(tmp_path / "absent.ino", SketchConfig(fqbn="arduino:avr:nano"))
    with pytest.raises(ToolchainError) as info:
        Toolchain(tmp_path / "res").prepare(sketch)
    assert info.value.code is ToolchainErrorCode.SKETCH_INVALID


def test_prepare_empty_fqbn(tmp_path):
    sketch = _sketch(tmp_path, fqbn="")
    with pytest.raises(ToolchainError) as info:
        Toolchain(tmp_path / "res").prepare(sketch)
    assert info.value.code is ToolchainErrorCode.SKETCH_INVALID


def test_prepare_writes_inputs(tmp_path):
    res = tmp_path / "res"
    sketch = _sketch(tmp_path, plugins=[PluginManifest(name="lib")], genbind_devices=[SPEC])
    sketch.compiled = True
    tmpdir = Toolchain(res).prepare(sketch)
    assert tmpdir == res / "tmp" / sketch.uuid.to_hex()
    assert sketch.tmpdir == tmpdir
    assert sketch.is_compiled is False
    assert (tmpdir / "Devices.cmake").read_text().endswith(f"smce_bindgen_sketch ({SPEC.full_string})\n")
    assert (tmpdir / "manifests" / "lib.cmake").is_file()


def test_sketch_cleanup_removes_prepared_dir(tmp_path):
    with _sketch(tmp_path) as sketch:
        tmpdir = Toolchain(tmp_path / "res").prepare(sketch)
        assert tmpdir.is_dir()
    assert not tmpdir.exists()


def test_configure_arguments(tmp_path):
    res = tmp_path / "res"
    sketch = _sketch(tmp_path, legacy_preproc_libs=[ArduinoLibrary("Servo")])
    args = Toolchain(res).configure_arguments(sketch)
    assert args[0] == f"-DSMCE_DIR={res}"
    assert f"-DSKETCH_HEXID={sketch.uuid.to_hex()}" in args
    assert "-DSKETCH_FQBN=arduino:avr:nano" in args
    assert f"-DSKETCH_PATH={sketch.source.absolute().as_posix()}" in args
    assert "-DPREPROC_REMOTE_LIBS=Servo" in args
    script = args[args.index("-P") + 1]
    assert script.endswith("/RtResources/SMCE/share/CMake/Scripts/ConfigureSketch.cmake")