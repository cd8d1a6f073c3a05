from __future__ import annotations

import pytest

from boot_time_report.errors import CapacityExceededError
from boot_time_report.kernel_log import parse_tracker_line, read_kernel_log, read_kernel_records
from boot_time_report.timeline import TimelineAssembler, TimelineChain


@pytest.mark.parametrize(
    "line,expected",
    [
        ("[BOOT TRACKER] ID:300 time=5000000", (300, 5_000_000)),
        ("Jan  1 00:00:02 imx8 kernel: [    2.1] [BOOT TRACKER] ID:301 time=7250000\n", (301, 7_250_000)),
        ("[BOOT TRACKER] ID: 42 stage time = 1234", (42, 1234)),
        ("[BOOT TRACKER] ID:-3 time=10", (-3, 10)),
    ],
)
def test_parse_tracker_line(line: str, expected) -> None:
    assert parse_tracker_line(line) == expected


@pytest.mark.parametrize(
    "line",
    [
        "ID:300 time=5000000",
        "[BOOT TRACKER] kernel init done",
        "[BOOT TRACKER] ID:300",
        "[BOOT TRACKER] ID:x time=5",
        "",
    ],
)
def test_non_tracker_lines_are_skipped(line: str) -> None:
    assert parse_tracker_line(line) is None


def test_kernel_records_continue_the_bootloader_chain() -> None:
    assembler = TimelineAssembler()
    assembler.primary.append("BOOTSTAGE_MAIN_LOOP", 4)

    appended = read_kernel_records(["[BOOT TRACKER] ID:300 time=5000000"], assembler)

    record = assembler.primary.records[-1]
    assert appended == 1
    assert record.name == "BOOTSTAGE_KERNEL_START"
    assert record.start_time == 5000
    assert record.delta_time == 4996


def test_kernel_markers_follow_handoff() -> None:
    assembler = TimelineAssembler()
    assembler.markers.spl_start_time = 10
    assembler.markers.bootloader_end_time = 100
    lines = [
        "random boot chatter",
        "[BOOT TRACKER] ID:300 time=150000",
        "[BOOT TRACKER] ID:207 time=900000",
        "[BOOT TRACKER] garbage",
        "[BOOT TRACKER] ID:301 time=2000000",
    ]

    assert read_kernel_records(lines, assembler) == 3

    summary = assembler.summary()
    assert summary.kernel_start_time == 150
    assert summary.kernel_end_time == 2000
    assert summary.handoff_time == 50
    assert summary.kernel_time == 1850
    assert summary.total_time == 2000
    assert [r.delta_time for r in assembler.primary.records] == [0, 750, 1100]


def test_first_record_before_handoff_does_not_start_kernel() -> None:
    assembler = TimelineAssembler()
    assembler.markers.bootloader_end_time = 500
    lines = [
        "[BOOT TRACKER] ID:300 time=300000",
        "[BOOT TRACKER] ID:301 time=800000",
    ]

    read_kernel_records(lines, assembler)

    assert assembler.markers.kernel_start_time == 0
    assert assembler.markers.kernel_end_time == 800
    assert assembler.summary().handoff_time == 0


def test_kernel_end_never_moves_backwards() -> None:
    assembler = TimelineAssembler()
    lines = [
        "[BOOT TRACKER] ID:300 time=1000000",
        "[BOOT TRACKER] ID:207 time=3000000",
        "[BOOT TRACKER] ID:301 time=2000000",
    ]

    read_kernel_records(lines, assembler)

    assert assembler.markers.kernel_start_time == 1000
    assert assembler.markers.kernel_end_time == 3000


def test_read_kernel_log_from_file(tmp_path) -> None:
    log = tmp_path / "messages"
    log.write_text(
        "\n".join(
            [
                "Jan  1 00:00:01 host syslogd started",
                "Jan  1 00:00:02 host kernel: [BOOT TRACKER] ID:300 time=2000000",
                "Jan  1 00:00:05 host kernel: [BOOT TRACKER] ID:301 time=4500000",
            ]
        )
        + "\n",
        encoding="utf-8",
    )
    assembler = TimelineAssembler()

    assert read_kernel_log(str(log), assembler) == 2
    assert [r.start_time for r in assembler.primary.records] == [2000, 4500]


def test_missing_kernel_log_is_reported_and_ignored(tmp_path, capsys) -> None:
    assembler = TimelineAssembler()
    assembler.primary.append("BOOTSTAGE_MAIN_LOOP", 4)
    assembler.markers.bootloader_end_time = 4

    appended = read_kernel_log(str(tmp_path / "does-not-exist"), assembler)

    assert appended == 0
    assert len(assembler.primary) == 1
    assert assembler.primary.prev_ms == 4
    assert assembler.markers.kernel_start_time == 0
    assert "Failed to open kernel log" in capsys.readouterr().err


def test_capacity_overflow_keeps_earlier_records() -> None:
    assembler = TimelineAssembler(primary=TimelineChain("primary", capacity=2))
    lines = [f"[BOOT TRACKER] ID:207 time={t}" for t in (1000, 2000, 3000)]

    with pytest.raises(CapacityExceededError):
        read_kernel_records(lines, assembler)

    assert [r.start_time for r in assembler.primary.records] == [1, 2]
