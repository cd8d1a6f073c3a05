"""Copy the preserved bootstage region out of physical memory.

The mapping only lives inside :func:`capture_region`; callers get a plain
``bytes`` copy.
"""

from __future__ import annotations

import mmap

from boot_time_report.errors import AccessDeniedError, MapFailedError


MEM_DEVICE = "/dev/mem"
BOOTSTAGE_PRESERVED_ADDR = 0xA0000000
BOOTSTAGE_SIZE = 0x90000


def capture_region(
    address: int = BOOTSTAGE_PRESERVED_ADDR,
    size: int = BOOTSTAGE_SIZE,
    device: str = MEM_DEVICE,
) -> bytes:
    """Map ``size`` bytes at ``address`` of ``device`` read-only and copy them out."""
    try:
        f = open(device, "rb", buffering=0)
    except OSError as e:
        raise AccessDeniedError(f"Error opening {device}: {e}") from e

    with f:
        try:
            with mmap.mmap(f.fileno(), size, flags=mmap.MAP_SHARED, prot=mmap.PROT_READ, offset=address) as m:
                data = m[:size]
        except (OSError, ValueError, OverflowError) as e:
            raise MapFailedError(f"mmap of 0x{size:x} bytes at 0x{address:x} in {device} failed: {e}") from e

    if len(data) != size:
        raise MapFailedError(f"short read from {device}: got {len(data)} of {size} bytes at 0x{address:x}")
    return data


def read_dump(path: str) -> bytes:
    """Read a region captured earlier (e.g. ``dd if=/dev/mem ...``) from a file."""
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise AccessDeniedError(f"Error opening bootstage dump {path}: {e}") from e
