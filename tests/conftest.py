from __future__ import annotations

import struct
from typing import Optional, Sequence, Tuple

import pytest

from boot_time_report.bootstage import (
    BOOTSTAGE_MAGIC,
    HEADER_FORMAT,
    HEADER_SIZE,
    MCU_BOOTRECORD_OFFSET,
    MCU_BOOTSTAGE_START_OFFSET,
    MCU_HEADER_FORMAT,
    MCU_PROFILE_FORMAT,
    MCU_PROFILE_SIZE,
    RECORD_FORMAT,
    RECORD_SIZE,
)


BUFFER_SIZE = MCU_BOOTSTAGE_START_OFFSET + 0x2000


def make_bootstage(
    records: Sequence[Tuple[int, int, int]] = (),
    profiles: Sequence[Tuple[str, int]] = (),
    *,
    magic: int = BOOTSTAGE_MAGIC,
    size: Optional[int] = None,
    count: Optional[int] = None,
    mcu_count: Optional[int] = None,
    buffer_size: int = BUFFER_SIZE,
) -> bytes:
    """Build a bootstage region.

    ``records`` are ``(stage_id, time_us, start_us)``, ``profiles`` are
    ``(name, time)``.
    """
    buf = bytearray(buffer_size)
    if count is None:
        count = len(records)
    if size is None:
        size = HEADER_SIZE + RECORD_SIZE * len(records)
    struct.pack_into(HEADER_FORMAT, buf, 0, 0, count, size, magic, len(records))

    for i, (stage_id, time_us, start_us) in enumerate(records):
        struct.pack_into(RECORD_FORMAT, buf, HEADER_SIZE + i * RECORD_SIZE, time_us, start_us, 0, 0, stage_id)

    if buffer_size < MCU_BOOTSTAGE_START_OFFSET + MCU_BOOTRECORD_OFFSET:
        return bytes(buf)

    if mcu_count is None:
        mcu_count = len(profiles)
    struct.pack_into(MCU_HEADER_FORMAT, buf, MCU_BOOTSTAGE_START_OFFSET, 1, mcu_count, 0)

    base = MCU_BOOTSTAGE_START_OFFSET + MCU_BOOTRECORD_OFFSET
    for i, (name, time) in enumerate(profiles):
        struct.pack_into(MCU_PROFILE_FORMAT, buf, base + i * MCU_PROFILE_SIZE, name.encode("ascii"), time)

    return bytes(buf)


@pytest.fixture
def bootstage_builder():
    return make_bootstage
