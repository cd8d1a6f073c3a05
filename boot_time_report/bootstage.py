"""Decode the U-Boot bootstage region preserved in RAM.

Layout of the captured region (little-endian, packed):

    0x00000  header   version:u32 count:u32 size:u32 magic:u32 next_id:u32
    0x00014  records  time_us:u64 start_us:u64 name:u64 flags:i32 id:i32  (x count)
    0x80000  MCU      record_id:u32 record_count:u32 start_time:u64
    0x80010  profiles name:char[24] time:u64                           (x record_count)

The region is decoded completely before anything is appended to the
timeline, so a malformed buffer never leaves partial records behind.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import List, Optional, Tuple

from boot_time_report.errors import InvalidHeaderError, TruncatedBufferError
from boot_time_report.stage_names import (
    BOOTSTAGE_BOOTM_HANDOFF,
    BOOTSTAGE_START_MCU,
    BOOTSTAGE_START_UBOOT,
    resolve,
)
from boot_time_report.timeline import RECORD_CAPACITY, TimelineAssembler


BOOTSTAGE_MAGIC = 0xB00757A3
BOOTSTAGE_VERSION = 0

HEADER_FORMAT = "<IIIII"
HEADER_SIZE = struct.calcsize(HEADER_FORMAT)  # 20
RECORD_FORMAT = "<QQQii"
RECORD_SIZE = struct.calcsize(RECORD_FORMAT)  # 32

MCU_BOOTSTAGE_START_OFFSET = 0x80000
MCU_BOOTRECORD_OFFSET = 0x10
MCU_HEADER_FORMAT = "<IIQ"
MCU_PROFILE_FORMAT = "<24sQ"
MCU_PROFILE_SIZE = struct.calcsize(MCU_PROFILE_FORMAT)  # 32

MCU_AWAKE_NAME = "MCU_AWAKE"


@dataclass(frozen=True)
class BootstageHeader:
    version: int
    count: int
    size: int
    magic: int
    next_id: int


@dataclass(frozen=True)
class BootstageRecord:
    stage_id: int
    time_us: int
    start_us: int
    flags: int

    @property
    def time_ms(self) -> int:
        # Prefer the start timestamp when the firmware filled it in.
        return (self.start_us if self.start_us else self.time_us) // 1000


@dataclass(frozen=True)
class McuHeader:
    record_id: int
    record_count: int
    start_time: int


@dataclass(frozen=True)
class McuProfile:
    name: str
    time: int

    @property
    def time_ms(self) -> int:
        return self.time // 1000


@dataclass(frozen=True)
class BootstageImage:
    header: BootstageHeader
    records: List[BootstageRecord]
    mcu_header: McuHeader
    mcu_profiles: List[McuProfile]


def _unpack(fmt: str, buffer: bytes, offset: int, what: str) -> Tuple:
    end = offset + struct.calcsize(fmt)
    if offset < 0 or end > len(buffer):
        raise TruncatedBufferError(
            f"{what} at 0x{offset:x}..0x{end:x} is outside the {len(buffer)} byte buffer"
        )
    return struct.unpack_from(fmt, buffer, offset)


def _c_string(raw: bytes) -> str:
    return raw.split(b"\x00", 1)[0].decode("ascii", errors="replace")


def decode_header(buffer: bytes) -> BootstageHeader:
    header = BootstageHeader(*_unpack(HEADER_FORMAT, buffer, 0, "bootstage header"))
    if header.magic != BOOTSTAGE_MAGIC or header.size == 0:
        raise InvalidHeaderError(
            f"Invalid bootstage header: magic=0x{header.magic:08x}, size=0x{header.size:x}"
        )
    return header


def decode_bootstage(
    buffer: bytes,
    capacity: int = RECORD_CAPACITY,
    mcu_capacity: Optional[int] = None,
) -> BootstageImage:
    """Decode header, stage records and the MCU section of a captured region.

    Record counts beyond ``capacity`` are clamped. The MCU chain shares
    ``mcu_capacity`` (default: ``capacity``) with its synthetic awake
    record, so at most ``mcu_capacity - 1`` profiles are read.
    """
    if mcu_capacity is None:
        mcu_capacity = capacity

    header = decode_header(buffer)

    records: List[BootstageRecord] = []
    for i in range(min(header.count, capacity)):
        time_us, start_us, _name_ptr, flags, stage_id = _unpack(
            RECORD_FORMAT, buffer, HEADER_SIZE + i * RECORD_SIZE, f"bootstage record {i}"
        )
        records.append(BootstageRecord(stage_id=stage_id, time_us=time_us, start_us=start_us, flags=flags))

    mcu_header = McuHeader(*_unpack(MCU_HEADER_FORMAT, buffer, MCU_BOOTSTAGE_START_OFFSET, "MCU header"))

    profiles: List[McuProfile] = []
    base = MCU_BOOTSTAGE_START_OFFSET + MCU_BOOTRECORD_OFFSET
    for i in range(min(mcu_header.record_count, max(0, mcu_capacity - 1))):
        raw_name, time = _unpack(MCU_PROFILE_FORMAT, buffer, base + i * MCU_PROFILE_SIZE, f"MCU profile {i}")
        profiles.append(McuProfile(name=_c_string(raw_name), time=time))

    return BootstageImage(header=header, records=records, mcu_header=mcu_header, mcu_profiles=profiles)


def load_bootstage(image: BootstageImage, assembler: TimelineAssembler) -> int:
    """Append a decoded image to the assembler and latch the bootloader markers.

    Returns the number of primary records appended.
    """
    markers = assembler.markers
    for rec in image.records:
        time_ms = rec.time_ms
        assembler.primary.append(resolve(rec.stage_id), time_ms)

        # Last one wins if a marker id shows up more than once.
        if rec.stage_id == BOOTSTAGE_START_UBOOT:
            markers.spl_start_time = time_ms
        if rec.stage_id == BOOTSTAGE_BOOTM_HANDOFF:
            markers.bootloader_end_time = time_ms
        if rec.stage_id == BOOTSTAGE_START_MCU:
            markers.secondary_start_time = time_ms

    mcu = assembler.secondary
    mcu.anchor(markers.secondary_start_time)
    mcu.append(MCU_AWAKE_NAME, markers.secondary_start_time)
    for profile in image.mcu_profiles:
        mcu.append(profile.name, profile.time_ms + markers.secondary_start_time)

    return len(image.records)


def read_bootstage_records(buffer: bytes, assembler: TimelineAssembler) -> int:
    image = decode_bootstage(
        buffer,
        capacity=assembler.primary.remaining,
        mcu_capacity=assembler.secondary.remaining,
    )
    return load_bootstage(image, assembler)
