"""Timeline assembly shared by the bootstage and kernel log readers.

Both readers feed one primary chain (bootloader records followed by
kernel records) so the delta of the first kernel record is measured
against the last bootloader record. The MCU co-processor gets its own
secondary chain anchored at the ``BOOTSTAGE_START_MCU`` marker.

All times are milliseconds since power-on.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

from boot_time_report.errors import CapacityExceededError


RECORD_CAPACITY = 256


@dataclass(frozen=True)
class BootRecord:
    name: str
    start_time: int
    delta_time: int


class TimelineChain:
    """Ordered, bounded sequence of records with a running previous time.

    A previous time of 0 means "no previous record": the next record gets
    a delta of 0.
    """

    def __init__(self, label: str, capacity: int = RECORD_CAPACITY, anchor_ms: int = 0):
        self.label = label
        self.capacity = capacity
        self.prev_ms = anchor_ms
        self.records: List[BootRecord] = []

    def __len__(self) -> int:
        return len(self.records)

    @property
    def remaining(self) -> int:
        return self.capacity - len(self.records)

    def anchor(self, anchor_ms: int) -> None:
        self.prev_ms = anchor_ms

    def append(self, name: str, start_ms: int) -> BootRecord:
        if len(self.records) >= self.capacity:
            raise CapacityExceededError(
                f"{self.label} chain is full ({self.capacity} records); dropping {name!r} at {start_ms}ms"
            )

        if self.prev_ms == 0:
            delta_ms = 0
        else:
            # Clock going backwards shows up as a zero delta, never a negative one.
            delta_ms = max(0, start_ms - self.prev_ms)

        record = BootRecord(name=name, start_time=start_ms, delta_time=delta_ms)
        self.records.append(record)
        self.prev_ms = start_ms
        return record


@dataclass
class BootMarkers:
    spl_start_time: int = 0
    bootloader_end_time: int = 0
    secondary_start_time: int = 0
    kernel_start_time: int = 0
    kernel_end_time: int = 0


def clamp_nonneg(value: int) -> int:
    return value if value > 0 else 0


@dataclass(frozen=True)
class BootSummary:
    """Read-only view of the markers plus the derived phase durations."""

    spl_start_time: int
    bootloader_end_time: int
    kernel_start_time: int
    kernel_end_time: int
    secondary_start_time: int
    primary_count: int
    secondary_count: int

    @property
    def power_on_time(self) -> int:
        return 0

    @property
    def spl_time(self) -> int:
        return clamp_nonneg(self.spl_start_time)

    @property
    def bootloader_time(self) -> int:
        return clamp_nonneg(self.bootloader_end_time - self.spl_start_time)

    @property
    def handoff_time(self) -> int:
        return clamp_nonneg(self.kernel_start_time - self.bootloader_end_time)

    @property
    def kernel_time(self) -> int:
        return clamp_nonneg(self.kernel_end_time - self.kernel_start_time)

    @property
    def total_time(self) -> int:
        return clamp_nonneg(self.kernel_end_time)

    def durations(self) -> List[Tuple[str, int]]:
        """Summary rows in report order."""
        return [
            ("Device Power On", self.power_on_time),
            ("SPL Time", self.spl_time),
            ("U-Boot Time", self.bootloader_time),
            ("Kernel handoff time", self.handoff_time),
            ("Kernel Time", self.kernel_time),
            ("Total Boot Time", self.total_time),
        ]


@dataclass
class TimelineAssembler:
    primary: TimelineChain = field(default_factory=lambda: TimelineChain("primary"))
    secondary: TimelineChain = field(default_factory=lambda: TimelineChain("MCU"))
    markers: BootMarkers = field(default_factory=BootMarkers)

    def summary(self) -> BootSummary:
        m = self.markers
        return BootSummary(
            spl_start_time=m.spl_start_time,
            bootloader_end_time=m.bootloader_end_time,
            kernel_start_time=m.kernel_start_time,
            kernel_end_time=m.kernel_end_time,
            secondary_start_time=m.secondary_start_time,
            primary_count=len(self.primary),
            secondary_count=len(self.secondary),
        )
