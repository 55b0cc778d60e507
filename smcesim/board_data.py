"""In-memory state of a virtual board, shared between host and sketch."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field, replace
from enum import Enum, IntEnum
from typing import Deque, Dict, Generic, List, Optional, TypeVar

from smcesim.config import BoardConfig, FrameBufferDirection

T = TypeVar("T")

_U16_MASK = 0xFFFF

_R8_SIZE = 1
_R16_SIZE = 2
_R32_SIZE = 4
_R64_SIZE = 8


class AtomicValue(Generic[T]):
    """A value whose reads and writes are serialised by a lock."""

    __slots__ = ("_value", "_lock")

    def __init__(self, value: T) -> None:
        self._value = value
        self._lock = threading.Lock()

    def load(self) -> T:
        with self._lock:
            return self._value

    def store(self, value: T) -> None:
        with self._lock:
            self._value = value

    def __repr__(self) -> str:
        return f"AtomicValue({self.load()!r})"


class PinDirection(Enum):
    """Data direction of a GPIO pin."""

    IN = 0
    OUT = 1


class ActiveDriver(Enum):
    """Which peripheral currently drives a pin."""

    GPIO = 0
    UART = 1
    I2C = 2
    SPI = 3
    OPAQUE = 4


@dataclass
class Pin:
    """A GPIO pin and the board's access rights on it."""

    id: int
    can_digital_read: bool = False
    can_digital_write: bool = False
    can_analog_read: bool = False
    can_analog_write: bool = False
    value: AtomicValue[int] = field(default_factory=lambda: AtomicValue(0))
    data_direction: AtomicValue[PinDirection] = field(
        default_factory=lambda: AtomicValue(PinDirection.IN)
    )
    active_driver: AtomicValue[ActiveDriver] = field(
        default_factory=lambda: AtomicValue(ActiveDriver.GPIO)
    )


@dataclass
class UartChannel:
    """Buffers and settings of one UART channel."""

    max_buffered_rx: int
    max_buffered_tx: int
    baud_rate: int
    rx_pin_override: Optional[int] = None
    tx_pin_override: Optional[int] = None
    active: AtomicValue[bool] = field(default_factory=lambda: AtomicValue(False))
    rx: Deque[int] = field(default_factory=deque)
    tx: Deque[int] = field(default_factory=deque)
    rx_lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    tx_lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


class StorageBus(Enum):
    """Bus through which a direct storage device is reached."""

    SPI = 0


@dataclass
class DirectStorage:
    """A storage device mapped onto a host directory."""

    bus: StorageBus
    accessor: int
    root_dir: str


class PixelFormat(IntEnum):
    """Pixel layouts a frame buffer can be declared with."""

    RGB888 = 0
    RGB444 = 1
    RGB565 = 2


@dataclass(frozen=True)
class Transform:
    """Display transform flags of a frame buffer."""

    horiz_flip: bool = False
    vert_flip: bool = False
    pixel_format: PixelFormat = PixelFormat.RGB888


@dataclass
class FrameBufferData:
    """Storage of a single RGB888 frame and its properties."""

    key: int
    direction: FrameBufferDirection
    width: AtomicValue[int] = field(default_factory=lambda: AtomicValue(0))
    height: AtomicValue[int] = field(default_factory=lambda: AtomicValue(0))
    freq: AtomicValue[int] = field(default_factory=lambda: AtomicValue(0))
    transform: AtomicValue[Transform] = field(default_factory=lambda: AtomicValue(Transform()))
    data: bytearray = field(default_factory=bytearray)
    data_lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


@dataclass(frozen=True)
class AllocationBases:
    """Offsets of a device's storage inside each bank, plus its instance count.

    ``r8`` to ``r64`` are byte offsets into the raw bank; the others are
    indices into the atomic and mutex banks.
    """

    count: int = 0
    r8: int = 0
    r16: int = 0
    r32: int = 0
    r64: int = 0
    a8: int = 0
    a16: int = 0
    a32: int = 0
    a64: int = 0
    mtx: int = 0


class BoardData:
    """Complete state of a virtual board built from a :class:`BoardConfig`.

    Pins are kept sorted by id; the device allocation map is sorted by name.
    """

    def __init__(self, config: BoardConfig) -> None:
        sorted_pins = sorted(config.pins)
        self.pins: List[Pin] = [Pin(id=pin_id) for pin_id in sorted_pins]
        self._apply_gpio_drivers(config, sorted_pins)

        self.uart_channels: List[UartChannel] = [
            UartChannel(
                max_buffered_rx=conf.rx_buffer_length & _U16_MASK,
                max_buffered_tx=conf.tx_buffer_length & _U16_MASK,
                baud_rate=conf.baud_rate,
                rx_pin_override=conf.rx_pin_override,
                tx_pin_override=conf.tx_pin_override,
            )
            for conf in config.uart_channels
        ]

        self.direct_storages: List[DirectStorage] = [
            DirectStorage(bus=StorageBus.SPI, accessor=conf.cspin, root_dir=conf.root_dir.as_posix())
            for conf in config.sd_cards
        ]

        self.frame_buffers: List[FrameBufferData] = [
            FrameBufferData(key=conf.key, direction=conf.direction) for conf in config.frame_buffers
        ]

        self._allocate_devices(config)

    def _apply_gpio_drivers(self, config: BoardConfig, sorted_pins: List[int]) -> None:
        for driver in config.gpio_drivers:
            try:
                pin = self.pins[sorted_pins.index(driver.pin_id)]
            except ValueError:
                continue
            if driver.analog_driver is not None:
                pin.can_analog_read = driver.analog_driver.board_read
                pin.can_analog_write = driver.analog_driver.board_write
            if driver.digital_driver is not None:
                pin.can_digital_read = driver.digital_driver.board_read
                pin.can_digital_write = driver.digital_driver.board_write

    def _allocate_devices(self, config: BoardConfig) -> None:
        def needed(attr: str) -> int:
            return sum(getattr(bd.spec, attr) * bd.count for bd in config.board_devices)

        r64_base = 0
        r32_base = r64_base + needed("r64_count") * _R64_SIZE
        r16_base = r32_base + needed("r32_count") * _R32_SIZE
        r8_base = r16_base + needed("r16_count") * _R16_SIZE

        self.raw_bank = bytearray(r8_base + needed("r8_count") * _R8_SIZE)
        self.a8_bank: List[AtomicValue[int]] = [AtomicValue(0) for _ in range(needed("a8_count"))]
        self.a16_bank: List[AtomicValue[int]] = [AtomicValue(0) for _ in range(needed("a16_count"))]
        self.a32_bank: List[AtomicValue[int]] = [AtomicValue(0) for _ in range(needed("a32_count"))]
        self.a64_bank: List[AtomicValue[int]] = [AtomicValue(0) for _ in range(needed("a64_count"))]
        self.mtx_bank: List[threading.Lock] = [threading.Lock() for _ in range(needed("mtx_count"))]

        bases = AllocationBases(r8=r8_base, r16=r16_base, r32=r32_base, r64=r64_base)
        allocations: Dict[str, AllocationBases] = {}
        for bd in config.board_devices:
            spec = bd.spec
            bases = replace(bases, count=bd.count)
            allocations.setdefault(spec.name, bases)
            bases = replace(
                bases,
                r8=bases.r8 + spec.r8_count * _R8_SIZE,
                r16=bases.r16 + spec.r16_count * _R16_SIZE,
                r32=bases.r32 + spec.r32_count * _R32_SIZE,
                r64=bases.r64 + spec.r64_count * _R64_SIZE,
                a8=bases.a8 + spec.a8_count,
                a16=bases.a16 + spec.a16_count,
                a32=bases.a32 + spec.a32_count,
                a64=bases.a64 + spec.a64_count,
                mtx=bases.mtx + spec.mtx_count,
            )
        self.device_allocation_map: Dict[str, AllocationBases] = dict(sorted(allocations.items()))


class _Segment:
    __slots__ = ("board_data",)

    def __init__(self, board_data: Optional[BoardData]) -> None:
        self.board_data = board_data


_segments: Dict[str, _Segment] = {}
_segments_lock = threading.Lock()


class SharedBoardData:
    """Owner or user of a named board-data segment.

    The creating side (:meth:`configure`) is the master and removes the
    segment on :meth:`reset`; other sides attach with :meth:`open_as_child`.
    """

    def __init__(self) -> None:
        self._name = ""
        self._board_data: Optional[BoardData] = None
        self._master = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def board_data(self) -> Optional[BoardData]:
        return self._board_data

    @property
    def is_master(self) -> bool:
        return self._master

    def configure(self, name: str, config: BoardConfig) -> bool:
        """Create the segment ``name`` holding fresh board data.

        Raises :class:`FileExistsError` if a segment of that name exists.
        """
        self.reset()
        self._master = True
        self._name = name
        board_data = BoardData(config)
        with _segments_lock:
            if name in _segments:
                self._master = False
                raise FileExistsError(f"shared segment {name!r} already exists")
            _segments[name] = _Segment(board_data)
        self._board_data = board_data
        return True

    def open_as_child(self, name: str) -> bool:
        """Attach to an existing segment; False if already attached or master.

        Raises :class:`FileNotFoundError` if no segment of that name exists.
        """
        if self._board_data is not None or self._master:
            return False
        self._name = name
        with _segments_lock:
            segment = _segments.get(name)
            if segment is None:
                raise FileNotFoundError(f"shared segment {name!r} does not exist")
            self._board_data = segment.board_data
        return True

    def reset(self) -> None:
        """Destroy the board data and, as master, remove the segment."""
        with _segments_lock:
            segment = _segments.get(self._name)
            if self._board_data is not None and segment is not None:
                segment.board_data = None
            if self._master:
                _segments.pop(self._name, None)
        self._board_data = None
        self._master = False

    def __enter__(self) -> "SharedBoardData":
        return self

    def __exit__(self, *args) -> None:
        self.reset()