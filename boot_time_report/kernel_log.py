"""Kernel side boot records from ``[BOOT TRACKER]`` log lines.

Example line (syslog prefix optional)::

    Jan  1 00:00:05 host kernel: [BOOT TRACKER] ID:300 time=5000000

``time`` is in microseconds since power-on. Records are appended to the
primary chain right after the bootloader records.
"""

from __future__ import annotations

import re
import sys
from typing import Iterable, Optional, Tuple

from boot_time_report.stage_names import resolve
from boot_time_report.timeline import TimelineAssembler


DEFAULT_KERNEL_LOG = "/var/log/messages"
BOOT_TRACKER_TAG = "[BOOT TRACKER]"

TRACKER_RE = re.compile(r"ID:\s*(?P<id>[-+]?\d+)[^=]*=\s*(?P<time>\d+)")


def parse_tracker_line(line: str) -> Optional[Tuple[int, int]]:
    """Return ``(stage_id, time_us)`` for a tracker line, else None."""
    if BOOT_TRACKER_TAG not in line:
        return None

    m = TRACKER_RE.search(line)
    if not m:
        return None

    return int(m.group("id")), int(m.group("time"))


def read_kernel_records(lines: Iterable[str], assembler: TimelineAssembler) -> int:
    """Append tracker records from ``lines``; returns how many were appended.

    The first record latches the kernel start marker when it comes after
    the bootloader handoff. Later records past kernel start push the
    kernel end marker forward.
    """
    markers = assembler.markers
    appended = 0

    for line in lines:
        parsed = parse_tracker_line(line)
        if parsed is None:
            continue

        stage_id, time_us = parsed
        time_ms = time_us // 1000
        assembler.primary.append(resolve(stage_id), time_ms)

        if appended == 0 and time_ms > markers.bootloader_end_time:
            markers.kernel_start_time = time_ms
        elif time_ms > markers.kernel_start_time:
            markers.kernel_end_time = max(markers.kernel_end_time, time_ms)

        appended += 1

    return appended


def read_kernel_log(path: str, assembler: TimelineAssembler) -> int:
    """Read tracker records from a log file.

    A missing or unreadable file is reported on stderr and contributes no
    records.
    """
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            lines = f.readlines()
    except OSError as e:
        print(f"ERROR: Failed to open kernel log {path}: {e}", file=sys.stderr)
        return 0

    return read_kernel_records(lines, assembler)
