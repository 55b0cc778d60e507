"""Mutable, no-fail view of a virtual board's state.

Every accessor degrades gracefully when the board data or the addressed
object is missing: reads return neutral values, writes are ignored.
"""

from __future__ import annotations

import threading
from bisect import bisect_left
from contextlib import contextmanager
from dataclasses import replace
from enum import Enum
from itertools import chain, repeat
from typing import Deque, Iterator, Optional, Tuple

from smcesim.board_data import (
    ActiveDriver,
    BoardData,
    FrameBufferData,
    PinDirection,
    StorageBus,
    UartChannel,
)
from smcesim.config import FrameBufferDirection

_LOCK_TIMEOUT = 1.0
_U8_MAX = 0xFF
_U16_MAX = 0xFFFF


def _check_range(name: str, value: int, upper: int) -> None:
    if not 0 <= value <= upper:
        raise ValueError(f"{name} must be between 0 and {upper}, got {value}")


@contextmanager
def _timed_lock(lock: threading.Lock) -> Iterator[bool]:
    acquired = lock.acquire(timeout=_LOCK_TIMEOUT)
    try:
        yield acquired
    finally:
        if acquired:
            lock.release()


def _pin_exists(board_data: Optional[BoardData], index: int) -> bool:
    return board_data is not None and 0 <= index < len(board_data.pins)


class _PinAccess:
    __slots__ = ("_bdat", "_idx")

    def __init__(self, board_data: Optional[BoardData], index: int) -> None:
        self._bdat = board_data
        self._idx = index


class VirtualAnalogDriver(_PinAccess):
    """Analog driver of a GPIO pin."""

    def exists(self) -> bool:
        """Whether the addressed pin is present."""
        return _pin_exists(self._bdat, self._idx)

    def can_read(self) -> bool:
        return self.exists() and self._bdat.pins[self._idx].can_analog_read

    def can_write(self) -> bool:
        return self.exists() and self._bdat.pins[self._idx].can_analog_write

    def read(self) -> int:
        return self._bdat.pins[self._idx].value.load() if self.exists() else 0

    def write(self, value: int) -> None:
        _check_range("value", value, _U16_MAX)
        if self.exists():
            self._bdat.pins[self._idx].value.store(value)


class VirtualDigitalDriver(_PinAccess):
    """Digital driver of a GPIO pin."""

    def exists(self) -> bool:
        """Whether the addressed pin is present."""
        return _pin_exists(self._bdat, self._idx)

    def can_read(self) -> bool:
        return self.exists() and self._bdat.pins[self._idx].can_digital_read

    def can_write(self) -> bool:
        return self.exists() and self._bdat.pins[self._idx].can_digital_write

    def read(self) -> bool:
        return self.exists() and self._bdat.pins[self._idx].value.load() != 0

    def write(self, value: bool) -> None:
        if self.exists():
            self._bdat.pins[self._idx].value.store(255 if value else 0)


class DataDirection(Enum):
    """Data direction of a pin as seen from the host."""

    IN = 0
    OUT = 1


class VirtualPin(_PinAccess):
    """A GPIO pin of the board."""

    def exists(self) -> bool:
        """Whether the addressed pin is present."""
        return _pin_exists(self._bdat, self._idx)

    def locked(self) -> bool:
        """True when the pin is missing or driven by something other than GPIO."""
        return (
            not self.exists()
            or self._bdat.pins[self._idx].active_driver.load() is not ActiveDriver.GPIO
        )

    def set_direction(self, direction: DataDirection) -> None:
        if self.exists() and not self.locked():
            self._bdat.pins[self._idx].data_direction.store(PinDirection(direction.value))

    def get_direction(self) -> DataDirection:
        if self.exists() and not self.locked():
            return DataDirection(self._bdat.pins[self._idx].data_direction.load().value)
        return DataDirection.IN

    def digital(self) -> VirtualDigitalDriver:
        return VirtualDigitalDriver(self._bdat, self._idx)

    def analog(self) -> VirtualAnalogDriver:
        return VirtualAnalogDriver(self._bdat, self._idx)


class VirtualPins:
    """The board's GPIO pins, addressed by pin id."""

    __slots__ = ("_bdat",)

    def __init__(self, board_data: Optional[BoardData]) -> None:
        self._bdat = board_data

    def __getitem__(self, pin_id: int) -> VirtualPin:
        if self._bdat is None:
            return VirtualPin(None, 0)
        pins = self._bdat.pins
        idx = bisect_left(pins, pin_id, key=lambda pin: pin.id)
        if idx < len(pins) and pins[idx].id == pin_id:
            return VirtualPin(self._bdat, idx)
        return VirtualPin(None, -1)


class _UartDirection(Enum):
    RX = 0
    TX = 1


class VirtualUartBuffer:
    """One direction's byte buffer of a UART channel."""

    __slots__ = ("_bdat", "_idx", "_dir")

    def __init__(self, board_data: Optional[BoardData], index: int, direction: _UartDirection) -> None:
        self._bdat = board_data
        self._idx = index
        self._dir = direction

    def exists(self) -> bool:
        return self._bdat is not None and 0 <= self._idx < len(self._bdat.uart_channels)

    def _parts(self) -> Tuple[Deque[int], threading.Lock, int]:
        chan: UartChannel = self._bdat.uart_channels[self._idx]
        if self._dir is _UartDirection.RX:
            return chan.rx, chan.rx_lock, chan.max_buffered_rx
        return chan.tx, chan.tx_lock, chan.max_buffered_tx

    def max_size(self) -> int:
        return self._parts()[2] if self.exists() else 0

    def size(self) -> int:
        if not self.exists():
            return 0
        buffer, lock, _ = self._parts()
        with _timed_lock(lock) as acquired:
            return len(buffer) if acquired else 0

    def read(self, count: int) -> bytes:
        """Remove and return up to ``count`` bytes from the front."""
        if count < 0:
            raise ValueError("count must not be negative")
        if not self.exists():
            return b""
        buffer, lock, _ = self._parts()
        with _timed_lock(lock) as acquired:
            if not acquired:
                return b""
            taken = min(len(buffer), count)
            return bytes(buffer.popleft() for _ in range(taken))

    def write(self, data: bytes) -> int:
        """Append as much of ``data`` as fits; return the number of bytes written."""
        payload = bytes(data)
        if not self.exists():
            return 0
        buffer, lock, max_buffered = self._parts()
        with _timed_lock(lock) as acquired:
            if not acquired:
                return 0
            room = max_buffered - len(buffer)
            if room < 0:
                room = max_buffered
            written = min(room, len(payload))
            buffer.extend(payload[:written])
            return written

    def front(self) -> bytes:
        """Return the next byte without removing it, or a NUL byte if none."""
        if not self.exists():
            return b"\x00"
        buffer, lock, _ = self._parts()
        with _timed_lock(lock) as acquired:
            if not acquired or not buffer:
                return b"\x00"
            return bytes((buffer[0],))


class VirtualUart:
    """A UART channel of the board."""

    __slots__ = ("_bdat", "_idx")

    def __init__(self, board_data: Optional[BoardData], index: int) -> None:
        self._bdat = board_data
        self._idx = index

    def exists(self) -> bool:
        return self._bdat is not None and 0 <= self._idx < len(self._bdat.uart_channels)

    def is_active(self) -> bool:
        return self.exists() and self._bdat.uart_channels[self._idx].active.load()

    def set_active(self, value: bool) -> None:
        if self.exists():
            self._bdat.uart_channels[self._idx].active.store(bool(value))

    def rx(self) -> VirtualUartBuffer:
        return VirtualUartBuffer(self._bdat, self._idx, _UartDirection.RX)

    def tx(self) -> VirtualUartBuffer:
        return VirtualUartBuffer(self._bdat, self._idx, _UartDirection.TX)


class VirtualUarts:
    """The board's UART channels, addressed by index."""

    __slots__ = ("_bdat",)

    def __init__(self, board_data: Optional[BoardData]) -> None:
        self._bdat = board_data

    def __getitem__(self, index: int) -> VirtualUart:
        return VirtualUart(self._bdat, index)

    def __iter__(self) -> Iterator[VirtualUart]:
        return (self[idx] for idx in range(len(self)))

    def __len__(self) -> int:
        return len(self._bdat.uart_channels) if self._bdat is not None else 0


class FrameBuffer:
    """An RGB888 frame buffer holding a single frame (camera or screen)."""

    __slots__ = ("_bdat", "_idx")

    def __init__(self, board_data: Optional[BoardData], index: int) -> None:
        self._bdat = board_data
        self._idx = index

    def exists(self) -> bool:
        return self._bdat is not None and 0 <= self._idx < len(self._bdat.frame_buffers)

    def _fb(self) -> FrameBufferData:
        return self._bdat.frame_buffers[self._idx]

    def direction(self) -> FrameBufferDirection:
        return self._fb().direction if self.exists() else FrameBufferDirection.IN

    @property
    def needs_horizontal_flip(self) -> bool:
        return self.exists() and self._fb().transform.load().horiz_flip

    @needs_horizontal_flip.setter
    def needs_horizontal_flip(self, value: bool) -> None:
        if self.exists():
            fb = self._fb()
            fb.transform.store(replace(fb.transform.load(), horiz_flip=bool(value)))

    @property
    def needs_vertical_flip(self) -> bool:
        return self.exists() and self._fb().transform.load().vert_flip

    @needs_vertical_flip.setter
    def needs_vertical_flip(self, value: bool) -> None:
        if self.exists():
            fb = self._fb()
            fb.transform.store(replace(fb.transform.load(), vert_flip=bool(value)))

    def _resize(self, fb: FrameBufferData) -> None:
        size = fb.width.load() * fb.height.load() * 3
        with fb.data_lock:
            if size < len(fb.data):
                del fb.data[size:]
            else:
                fb.data.extend(bytes(size - len(fb.data)))

    @property
    def width(self) -> int:
        """Width in pixels."""
        return self._fb().width.load() if self.exists() else 0

    @width.setter
    def width(self, value: int) -> None:
        _check_range("width", value, _U16_MAX)
        if self.exists():
            fb = self._fb()
            fb.width.store(value)
            self._resize(fb)

    @property
    def height(self) -> int:
        """Height in pixels."""
        return self._fb().height.load() if self.exists() else 0

    @height.setter
    def height(self, value: int) -> None:
        _check_range("height", value, _U16_MAX)
        if self.exists():
            fb = self._fb()
            fb.height.store(value)
            self._resize(fb)

    @property
    def freq(self) -> int:
        """Frame frequency in Hz."""
        return self._fb().freq.load() if self.exists() else 0

    @freq.setter
    def freq(self, value: int) -> None:
        _check_range("freq", value, _U8_MAX)
        if self.exists():
            self._fb().freq.store(value)

    def write_rgb888(self, data: bytes) -> bool:
        """Copy a whole RGB888 frame in; False if missing or the size differs."""
        if not self.exists():
            return False
        fb = self._fb()
        if len(data) != len(fb.data):
            return False
        with fb.data_lock:
            fb.data[:] = data
        return True

    def read_rgb888(self, size: int) -> Optional[bytes]:
        """Copy the frame out; None if missing or ``size`` differs from the frame."""
        if not self.exists():
            return None
        fb = self._fb()
        if size != len(fb.data):
            return None
        with fb.data_lock:
            return bytes(fb.data)

    def write_rgb444(self, data: bytes) -> bool:
        """Store each byte as a low-nibble byte followed by a shifted byte."""
        if not self.exists():
            return False
        fb = self._fb()
        if len(data) != len(fb.data) // 2:
            return False
        with fb.data_lock:
            for pos, value in enumerate(bytes(data)):
                fb.data[2 * pos] = value & 0x0F
                fb.data[2 * pos + 1] = (value << 4) & 0xFF
        return True

    def read_rgb444(self, size: int) -> Optional[bytes]:
        """Pack byte pairs of the frame into ``size`` bytes.

        ``size`` must equal the frame size; pairs past the end of the frame
        read as zero.
        """
        if not self.exists():
            return None
        fb = self._fb()
        if size != len(fb.data):
            return None
        with fb.data_lock:
            source = chain(bytes(fb.data), repeat(0))
            return bytes((lo & 0x0F) | (hi >> 4) for lo, hi, _ in zip(source, source, range(size)))

    def write_rgb565(self, data: bytes) -> bool:
        """Expand big-endian RGB565 pixels into the RGB888 frame."""
        if not self.exists():
            return False
        fb = self._fb()
        payload = bytes(data)
        if divmod(len(payload), 2) != divmod(len(fb.data), 3):
            return False
        with fb.data_lock:
            for pixel in range(len(payload) // 2):
                value = (payload[2 * pixel] << 8) | payload[2 * pixel + 1]
                fb.data[3 * pixel] = ((value >> 11) & 0x1F) << 3
                fb.data[3 * pixel + 1] = ((value >> 5) & 0x3F) << 2
                fb.data[3 * pixel + 2] = (value & 0x1F) << 3
        return True

    def read_rgb565(self, size: int) -> Optional[bytes]:
        """Pack the frame's pixels as big-endian RGB565 into ``size`` bytes.

        ``size`` must equal the frame size; pixels past the end of the frame
        read as black.
        """
        if not self.exists():
            return None
        fb = self._fb()
        if size != len(fb.data):
            return None
        out = bytearray()
        with fb.data_lock:
            source = chain(bytes(fb.data), repeat(0))
            while len(out) < size:
                red, green, blue = next(source), next(source), next(source)
                value = ((red >> 3) << 11) | ((green >> 2) << 5) | (blue >> 3)
                out.append(value >> 8)
                out.append(value & 0xFF)
        return bytes(out[:size])


class FrameBuffers:
    """The board's frame buffers, addressed by key."""

    __slots__ = ("_bdat",)

    def __init__(self, board_data: Optional[BoardData]) -> None:
        self._bdat = board_data

    def __getitem__(self, key: int) -> FrameBuffer:
        if self._bdat is None:
            return FrameBuffer(None, 0)
        buffers = self._bdat.frame_buffers
        idx = bisect_left(buffers, key, key=lambda fb: fb.key)
        if idx < len(buffers) and buffers[idx].key == key:
            return FrameBuffer(self._bdat, idx)
        return FrameBuffer(None, -1)


class Link(Enum):
    """Bus kinds through which a device can be reached."""

    UART = 0
    SPI = 1
    I2C = 2


_LINK_TO_BUS = {Link.SPI: StorageBus.SPI}


class BoardView:
    """Mutable view of a virtual board; invalid when built without board data."""

    def __init__(self, board_data: Optional[BoardData] = None) -> None:
        self._bdat = board_data
        self.pins = VirtualPins(board_data)
        self.uart_channels = VirtualUarts(board_data)
        self.frame_buffers = FrameBuffers(board_data)

    @property
    def board_data(self) -> Optional[BoardData]:
        return self._bdat

    def valid(self) -> bool:
        return self._bdat is not None

    def storage_get_root(self, link: Link, accessor: int) -> str:
        """Root directory of the storage on ``link`` at ``accessor``, or ''."""
        if self._bdat is None:
            return ""
        bus = _LINK_TO_BUS.get(link)
        if bus is None:
            return ""
        for storage in self._bdat.direct_storages:
            if storage.bus is bus and storage.accessor == accessor:
                return storage.root_dir
        return ""