from __future__ import annotations

import csv
from typing import List

from boot_time_report.timeline import BootRecord, TimelineAssembler


RULE = "-" * 68


def _banner(lines: List[str], title: str) -> None:
    lines.append(RULE)
    lines.append(f"                 {title}")
    lines.append(RULE)


def _record_lines(lines: List[str], records: List[BootRecord]) -> None:
    for r in records:
        lines.append(f"{r.name:<30s} = {r.start_time:6d} ms (+{r.delta_time:3d} ms)")


def build_text_report(assembler: TimelineAssembler, hostname: str = "") -> str:
    summary = assembler.summary()
    title = f"{hostname} Boot Time Report".strip()

    lines: List[str] = []
    _banner(lines, title)
    for label, value in summary.durations():
        lines.append(f"{label:<24s}: {value} ms")
    lines.append(RULE)
    lines.append("")

    _banner(lines, "Bootloader and Kernel Boot Records")
    _record_lines(lines, assembler.primary.records)
    lines.append(RULE)
    lines.append("")

    _banner(lines, "MCU Boot Records")
    _record_lines(lines, assembler.secondary.records)
    lines.append(RULE)

    return "\n".join(lines) + "\n"


def write_records_csv(path: str, assembler: TimelineAssembler) -> None:
    with open(path, "w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(["chain", "index", "name", "start_ms", "delta_ms"])
        for chain in (assembler.primary, assembler.secondary):
            for i, r in enumerate(chain.records):
                w.writerow([chain.label, i, r.name, r.start_time, r.delta_time])
