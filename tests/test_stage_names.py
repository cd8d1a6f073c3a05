from __future__ import annotations

import pytest

from boot_time_report.stage_names import (
    BOOTSTAGE_BOOTM_HANDOFF,
    BOOTSTAGE_KERNEL_START,
    STAGE_NAMES,
    UNKNOWN_STAGE_NAME,
    resolve,
)


def test_registered_ids_resolve_to_their_names() -> None:
    for stage_id, name in STAGE_NAMES.items():
        assert resolve(stage_id) == name

    assert resolve(0) == "START"
    assert resolve(BOOTSTAGE_BOOTM_HANDOFF) == "BOOTSTAGE_BOOTM_HANDOFF"
    assert resolve(BOOTSTAGE_KERNEL_START) == "BOOTSTAGE_KERNEL_START"


@pytest.mark.parametrize("stage_id", [-1, 16, 29, 56, 59, 209, 299, 302, -(2**31), 2**40])
def test_unmapped_ids_resolve_to_sentinel(stage_id: int) -> None:
    assert resolve(stage_id) == UNKNOWN_STAGE_NAME


def test_resolve_is_repeatable() -> None:
    assert resolve(185) == resolve(185)
    assert resolve(56) == resolve(56) == UNKNOWN_STAGE_NAME
