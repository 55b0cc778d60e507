"""Configuration records for boards, sketches and plugins."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from smcesim.device_spec import BoardDeviceSpecification

_U16_MAX = 0xFFFF


def _check_u16(name: str, value: Optional[int]) -> None:
    if value is not None and not 0 <= value <= _U16_MAX:
        raise ValueError(f"{name} must be between 0 and {_U16_MAX}, got {value}")


def _check_non_negative(name: str, value: int) -> None:
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {value}")


@dataclass
class DigitalDriver:
    """Digital access rights of the board on a pin."""

    board_read: bool = False
    board_write: bool = False


@dataclass
class AnalogDriver:
    """Analog access rights of the board on a pin."""

    board_read: bool = False
    board_write: bool = False


@dataclass
class GpioDrivers:
    """Drivers to apply to an existing GPIO pin."""

    pin_id: int = 0
    digital_driver: Optional[DigitalDriver] = None
    analog_driver: Optional[AnalogDriver] = None

    def __post_init__(self) -> None:
        _check_u16("pin_id", self.pin_id)


@dataclass
class UartChannelConfig:
    """Settings of one UART channel."""

    rx_pin_override: Optional[int] = None
    tx_pin_override: Optional[int] = None
    baud_rate: int = 9600
    rx_buffer_length: int = 64
    tx_buffer_length: int = 64
    flushing_threshold: int = 0

    def __post_init__(self) -> None:
        _check_u16("rx_pin_override", self.rx_pin_override)
        _check_u16("tx_pin_override", self.tx_pin_override)
        _check_u16("baud_rate", self.baud_rate)
        _check_non_negative("rx_buffer_length", self.rx_buffer_length)
        _check_non_negative("tx_buffer_length", self.tx_buffer_length)
        _check_non_negative("flushing_threshold", self.flushing_threshold)


@dataclass
class SecureDigitalStorage:
    """An SD card reachable over SPI, backed by a host directory."""

    cspin: int = 0
    root_dir: Path = field(default_factory=Path)

    def __post_init__(self) -> None:
        _check_u16("cspin", self.cspin)
        self.root_dir = Path(self.root_dir)


class FrameBufferDirection(Enum):
    """Data direction of a frame buffer."""

    IN = 0  # host to board (camera)
    OUT = 1  # board to host (screen)


@dataclass
class FrameBufferConfig:
    """A frame buffer identified by its key."""

    key: int
    direction: FrameBufferDirection

    def __post_init__(self) -> None:
        _check_non_negative("key", self.key)


@dataclass
class BoardDevice:
    """A number of instances of a board device to install."""

    spec: BoardDeviceSpecification
    count: int

    def __post_init__(self) -> None:
        _check_non_negative("count", self.count)


@dataclass
class BoardConfig:
    """Configuration for running a sketch."""

    pins: List[int] = field(default_factory=list)
    gpio_drivers: List[GpioDrivers] = field(default_factory=list)
    uart_channels: List[UartChannelConfig] = field(default_factory=list)
    sd_cards: List[SecureDigitalStorage] = field(default_factory=list)
    frame_buffers: List[FrameBufferConfig] = field(default_factory=list)
    board_devices: List[BoardDevice] = field(default_factory=list)

    def __post_init__(self) -> None:
        for pin in self.pins:
            _check_u16("pin", pin)


@dataclass
class ArduinoLibrary:
    """Library to pull from the Arduino library manager."""

    name: str
    version: str = ""  # empty means latest


class PluginDefaults(Enum):
    """Layout presets of a plugin's source tree."""

    ARDUINO = 0  # src/** is sources, src/ is incdir, no linkdir
    SINGLE_DIR = 1  # ./* is sources, ./ is incdir, ./ is linkdir
    C = 2  # src/* is sources, include/ is incdir, lib is linkdir
    NONE = 3  # empty
    CMAKE = 4  # no target generated; the tree is added as a subdirectory


@dataclass
class PluginManifest:
    """Description of a plugin to compile with a sketch."""

    name: str = ""
    version: str = ""
    depends: List[str] = field(default_factory=list)
    needs_devices: List[str] = field(default_factory=list)
    uri: str = ""
    patch_uri: str = ""
    defaults: PluginDefaults = PluginDefaults.ARDUINO
    incdirs: List[str] = field(default_factory=list)
    sources: List[str] = field(default_factory=list)
    linkdirs: List[str] = field(default_factory=list)
    linklibs: List[str] = field(default_factory=list)
    development: bool = False


@dataclass
class SketchConfig:
    """Configuration for building a sketch."""

    fqbn: str = ""
    extra_board_uris: List[str] = field(default_factory=list)
    legacy_preproc_libs: List[ArduinoLibrary] = field(default_factory=list)
    plugins: List[PluginManifest] = field(default_factory=list)
    genbind_devices: List[BoardDeviceSpecification] = field(default_factory=list)