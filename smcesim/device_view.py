"""Access to the storage that user-defined board devices occupy on a board."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Optional, Tuple

from smcesim.board_data import AllocationBases, AtomicValue, BoardData
from smcesim.board_view import BoardView

_RAW_STORAGES = ("r8", "r16", "r32", "r64")


@dataclass(frozen=True)
class DeviceAllocation:
    """Where the instances of one board device live inside the board's banks.

    Raw storages (``r8`` to ``r64``) are byte ranges of the raw bank; the
    atomic and mutex sequences start at the device's first slot and run to
    the end of their bank.
    """

    count: int = 0
    bases: AllocationBases = field(default_factory=AllocationBases)
    board_data: Optional[BoardData] = field(default=None, repr=False, compare=False)

    def _bank_from(self, bank_name: str, base: int) -> tuple:
        if self.board_data is None:
            return ()
        return tuple(getattr(self.board_data, bank_name)[base:])

    @property
    def a8(self) -> Tuple[AtomicValue[int], ...]:
        return self._bank_from("a8_bank", self.bases.a8)

    @property
    def a16(self) -> Tuple[AtomicValue[int], ...]:
        return self._bank_from("a16_bank", self.bases.a16)

    @property
    def a32(self) -> Tuple[AtomicValue[int], ...]:
        return self._bank_from("a32_bank", self.bases.a32)

    @property
    def a64(self) -> Tuple[AtomicValue[int], ...]:
        return self._bank_from("a64_bank", self.bases.a64)

    @property
    def mutexes(self) -> Tuple[threading.Lock, ...]:
        return self._bank_from("mtx_bank", self.bases.mtx)

    def raw_bytes(self, storage: str, offset: int, size: int) -> memoryview:
        """Return a writable view of ``size`` bytes of a raw storage.

        ``storage`` is one of ``"r8"``, ``"r16"``, ``"r32"`` or ``"r64"``;
        ``offset`` is counted in bytes from the device's base in that storage.
        Raises :class:`ValueError` for an unknown storage or negative numbers
        and :class:`IndexError` when the range lies outside the raw bank.
        """
        if storage not in _RAW_STORAGES:
            raise ValueError(f"unknown raw storage {storage!r}")
        if offset < 0 or size < 0:
            raise ValueError("offset and size must not be negative")
        if self.board_data is None:
            raise IndexError("allocation has no backing storage")
        start = getattr(self.bases, storage) + offset
        end = start + size
        if end > len(self.board_data.raw_bank):
            raise IndexError(f"range {start}..{end} lies outside the raw bank")
        return memoryview(self.board_data.raw_bank)[start:end]


class BoardDeviceView:
    """Lookup of board-device allocations through a :class:`BoardView`."""

    __slots__ = ("_bdat",)

    def __init__(self, view: BoardView) -> None:
        self._bdat = view.board_data

    def valid(self) -> bool:
        return self._bdat is not None

    def get_bases(self, name: str) -> DeviceAllocation:
        """Return the allocation of device ``name``.

        An invalid view yields an empty allocation; an unknown device name
        raises :class:`KeyError`.
        """
        if self._bdat is None:
            return DeviceAllocation()
        try:
            bases = self._bdat.device_allocation_map[name]
        except KeyError:
            raise KeyError(f"no board device named {name!r}") from None
        return DeviceAllocation(count=bases.count, bases=bases, board_data=self._bdat)


def get_bases(view: BoardView, name: str) -> DeviceAllocation:
    """Return the allocation of device ``name`` on the board behind ``view``."""
    return BoardDeviceView(view).get_bases(name)