# smcesim

`smcesim` models a virtual microcontroller board in Python. A `BoardConfig`
describes the board's GPIO pins, UART channels, SD cards, frame-buffers and
board devices. `BoardData` builds the board state from that description, and
`BoardView` gives a no-fail interface for reading and driving the state.

The package also prepares sketch builds. It can check a resources directory,
create a sketch's build directory, write the plugin manifests and the device
list into it, and put together the configure arguments.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## A short tour

```python
from smcesim.config import (
    BoardConfig, BoardDevice, DigitalDriver, FrameBufferConfig,
    FrameBufferDirection, GpioDrivers, UartChannelConfig,
)
from smcesim.device_spec import BoardDeviceSpecification
from smcesim.board_data import BoardData
from smcesim.board_view import BoardView
from smcesim.device_view import get_bases

spec = BoardDeviceSpecification('"MyDev" "1" "u8 flag"', "MyDev", r8_count=1)
config = BoardConfig(
    pins=[13, 2],
    gpio_drivers=[GpioDrivers(pin_id=13, digital_driver=DigitalDriver(board_read=True, board_write=True))],
    uart_channels=[UartChannelConfig()],
    frame_buffers=[FrameBufferConfig(key=0, direction=FrameBufferDirection.IN)],
    board_devices=[BoardDevice(spec, 2)],
)
view = BoardView(BoardData(config))

led = view.pins[13].digital()
led.write(True)
assert led.read()

uart = view.uart_channels[0]
assert uart.rx().write(b"hello") == 5
assert uart.rx().read(5) == b"hello"

camera = view.frame_buffers[0]
camera.width, camera.height = 2, 1          # the frame now holds 2 * 1 * 3 bytes
assert camera.write_rgb888(bytes(6))
assert camera.read_rgb888(6) == bytes(6)

device = get_bases(view, "MyDev")
assert device.count == 2
device.raw_bytes("r8", 0, 1)[0] = 1
```

Operations on something that does not exist (a pin that was not configured,
a view with no board behind it) do nothing and return neutral values (`0`,
`False`, `b""`, `None` or `""`) instead of raising. Values outside their
range, such as a negative read count or a width above 65535, raise
`ValueError`.

## Modules

- `smcesim.identifiers`: `Uuid`, a random 16-byte identifier.
  `Uuid.generate()` creates one and `to_hex()` renders it as 32 upper-case
  hex digits.
- `smcesim.device_spec`: `BoardDeviceSpecification`, which gives the number
  of raw (`r8`–`r64`), atomic (`a8`–`a64`) and mutex slots one instance of a
  board device needs. `total_slots()` returns their sum.
- `smcesim.config`: configuration dataclasses:
  - `BoardConfig`, `GpioDrivers`, `DigitalDriver`, `AnalogDriver`
  - `UartChannelConfig`, `SecureDigitalStorage`
  - `FrameBufferConfig`, `FrameBufferDirection`, `BoardDevice`
  - `SketchConfig`, `ArduinoLibrary`, `PluginManifest`, `PluginDefaults`
- `smcesim.sketch`: `Sketch`, a source path with its configuration, its
  identifier and its build state. `cleanup()` removes its build directory.
  The same happens when the sketch is used as a context manager.
- `smcesim.manifest`: `cmake_list`, `render_manifest` and `write_manifest`.
  They render a plugin manifest as a CMake fragment and write it to a file,
  creating the parent directories.
- `smcesim.board_data`: the board state:
  - `BoardData`, with pins sorted by id, UART channels, direct storages and
    frame-buffer data
  - the device storage banks, with an allocation map sorted by device name
  - `AtomicValue`, a lock-guarded value
  - `SharedBoardData`, a named, in-process registry of board states. It has a
    master side (`configure`) and child sides (`open_as_child`).
    `configure` raises `FileExistsError` if the name is taken, and
    `open_as_child` raises `FileNotFoundError` if the name is unknown.
- `smcesim.board_view`: `BoardView`, which offers:
  - `pins` (`VirtualPin` with its digital and analog drivers)
  - `uart_channels` (`VirtualUart` with `rx()`/`tx()` buffers)
  - `frame_buffers` (`FrameBuffer` with `width`, `height`, `freq` and flip
    properties, and RGB888, RGB444 and RGB565 transfers)
  - `storage_get_root(link, accessor)` for SD-card root directories on
    `Link.SPI`
- `smcesim.device_view`: `BoardDeviceView` and `get_bases`. They return a
  `DeviceAllocation` for a named board device. An unknown name raises
  `KeyError`, and an invalid view gives an empty allocation.
- `smcesim.toolchain`: `Toolchain`, with these methods:
  - `check_resource_dir()` checks the resources directory.
  - `prepare(sketch)` creates `<resources>/tmp/<sketch hex id>` and writes
    `Devices.cmake` and `manifests/<plugin>.cmake` into it.
  - `configure_arguments(sketch)` lists the configure arguments.

  The helpers `process_libraries`, `write_manifests` and
  `write_devices_specs` are available on their own. Failures raise
  `ToolchainError`, which carries a `ToolchainErrorCode`.

## What it does not do

- It runs no programs. `Toolchain` does not look for CMake, configure or
  build a sketch, or produce an executable. It only prepares the build
  directory and the argument list.
- It has no board runner. It does not start, suspend or stop a sketch
  process.
- It collects no runtime log.
- Board state lives in the current Python process. `SharedBoardData` shares
  it by name within that process, not through operating-system shared
  memory.