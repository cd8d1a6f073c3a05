"""boot-time-report: rebuild the boot timeline from bootstage memory and the kernel log.

What it does:
- Copies the bootstage region preserved by U-Boot out of /dev/mem (or reads a
  previously captured dump with --bootstage-dump).
- Decodes bootloader and MCU records, then appends the [BOOT TRACKER] records
  from the kernel log to the same timeline.
- Prints a text report and writes an interactive HTML report (and optionally CSV).

Example:
  boot-time-report --kernel-log /var/log/messages --html /tmp/boot_time_report.html
"""

from __future__ import annotations

import argparse
import socket
import sys
from typing import Iterable, Optional

from boot_time_report.bootstage import (
    BOOTSTAGE_VERSION,
    BootstageImage,
    decode_bootstage,
    load_bootstage,
)
from boot_time_report.capture import (
    BOOTSTAGE_PRESERVED_ADDR,
    BOOTSTAGE_SIZE,
    MEM_DEVICE,
    capture_region,
    read_dump,
)
from boot_time_report.errors import BootTimeError, CapacityExceededError
from boot_time_report.html_report import DEFAULT_HTML_REPORT, maybe_write_html_report
from boot_time_report.kernel_log import DEFAULT_KERNEL_LOG, read_kernel_log
from boot_time_report.report import build_text_report, write_records_csv
from boot_time_report.timeline import TimelineAssembler


def _int_auto(value: str) -> int:
    return int(value, 0)


def _default_hostname() -> str:
    try:
        return socket.gethostname()
    except OSError as e:
        print(f"WARNING: gethostname failed: {e}", file=sys.stderr)
        return ""


def _print_debug(image: BootstageImage) -> None:
    hdr = image.header
    print(f" Version : {hdr.version}")
    print(f" Count : {hdr.count}")
    print(f" Size : 0x{hdr.size:x}")
    print(f" Magic : 0x{hdr.magic:08x}")
    print(f" Next ID : {hdr.next_id}")
    if hdr.version != BOOTSTAGE_VERSION:
        print(f"WARNING: unexpected bootstage version {hdr.version} (expected {BOOTSTAGE_VERSION})", file=sys.stderr)
    mcu = image.mcu_header
    print(f"Subsystem(MCU) record id = {mcu.record_id:x}")
    print(f"MCU:{mcu.record_id} record count = {mcu.record_count}")
    print(f"MCU:{mcu.record_id} record start time = {mcu.start_time}")


def _load_bootloader(args: argparse.Namespace, assembler: TimelineAssembler) -> bool:
    try:
        if args.bootstage_dump:
            buffer = read_dump(args.bootstage_dump)
        else:
            buffer = capture_region(address=args.address, size=args.size, device=args.mem_device)

        image = decode_bootstage(
            buffer,
            capacity=assembler.primary.remaining,
            mcu_capacity=assembler.secondary.remaining,
        )
        if args.debug:
            _print_debug(image)
        load_bootstage(image, assembler)
    except BootTimeError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return False
    return True


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Report boot time from U-Boot bootstage records and the kernel log.",
    )
    parser.add_argument("--mem-device", default=MEM_DEVICE, help=f"Physical memory device (default: {MEM_DEVICE})")
    parser.add_argument(
        "--address",
        type=_int_auto,
        default=BOOTSTAGE_PRESERVED_ADDR,
        help=f"Physical address of the bootstage region (default: 0x{BOOTSTAGE_PRESERVED_ADDR:x})",
    )
    parser.add_argument(
        "--size",
        type=_int_auto,
        default=BOOTSTAGE_SIZE,
        help=f"Size of the bootstage region in bytes (default: 0x{BOOTSTAGE_SIZE:x})",
    )
    parser.add_argument(
        "--bootstage-dump",
        default=None,
        help="Read the bootstage region from a captured file instead of physical memory",
    )
    parser.add_argument(
        "--kernel-log",
        default=DEFAULT_KERNEL_LOG,
        help=f"Kernel log with [BOOT TRACKER] lines (default: {DEFAULT_KERNEL_LOG})",
    )
    parser.add_argument("--html", default=DEFAULT_HTML_REPORT, help=f"HTML report path (default: {DEFAULT_HTML_REPORT})")
    parser.add_argument("--no-html", action="store_true", help="Do not write the HTML report")
    parser.add_argument("--csv", default=None, help="Also write all records to this CSV file")
    parser.add_argument("--hostname", default=None, help="Name shown in report titles (default: system host name)")
    parser.add_argument("--debug", action="store_true", help="Print the decoded bootstage and MCU headers")

    args = parser.parse_args(list(argv) if argv is not None else None)

    hostname = args.hostname if args.hostname is not None else _default_hostname()
    assembler = TimelineAssembler()
    status = 0

    if not _load_bootloader(args, assembler):
        print("WARNING: continuing with kernel log records only", file=sys.stderr)
        status = 1

    try:
        read_kernel_log(args.kernel_log, assembler)
    except CapacityExceededError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        status = 1

    print(build_text_report(assembler, hostname=hostname), end="")

    if args.csv:
        try:
            write_records_csv(args.csv, assembler)
            print(f"Wrote: {args.csv}")
        except OSError as e:
            print(f"ERROR: failed to write {args.csv}: {e}", file=sys.stderr)
            status = 1

    if not args.no_html:
        if maybe_write_html_report(out_path=args.html, assembler=assembler, hostname=hostname):
            print(f"Wrote: {args.html}")

    return status


if __name__ == "__main__":
    raise SystemExit(main())
