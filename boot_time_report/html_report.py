"""Self-contained interactive HTML boot time report (plotly.js inlined)."""

from __future__ import annotations

import html
import sys
from typing import List

from boot_time_report.timeline import BootRecord, BootSummary, TimelineAssembler


DEFAULT_HTML_REPORT = "boot_time_report.html"

PRIMARY_PREFIX = "A53: "
MCU_PREFIX = "MCU: "

PAGE_STYLE = """
body{font:14px system-ui,Segoe UI,Arial;margin:16px;}
h1{font-size:18px;margin:0 0 10px 0}
h3{margin:18px 0 8px 0}
table{border-collapse:collapse;width:100%;font-size:12px}
th,td{border:1px solid #e3e8ee;padding:6px 8px;text-align:left}
th{background:#f7f9fc}
.summary{max-width:560px;margin:8px 0 16px 0}
"""


def _summary_table(summary: BootSummary) -> str:
    rows: List[str] = []
    durations = summary.durations()
    for i, (label, value) in enumerate(durations):
        if i == len(durations) - 1:
            rows.append(f"<tr><td><b>{html.escape(label)}</b></td><td><b>{value} ms</b></td></tr>")
        else:
            rows.append(f"<tr><td>{html.escape(label)}</td><td>{value} ms</td></tr>")
    return (
        "<table class='summary'>"
        "<thead><tr><th colspan='2'>Boot Time Report Summary</th></tr></thead>"
        "<tbody>" + "".join(rows) + "</tbody></table>"
    )


def _stage_table(title: str, records: List[BootRecord]) -> str:
    rows = [
        f"<tr><td>{i}</td><td>{html.escape(r.name)}</td><td>{r.start_time}</td><td>{r.delta_time}</td></tr>"
        for i, r in enumerate(records, start=1)
    ]
    return (
        f"<h3>{html.escape(title)}</h3>"
        "<table><thead><tr><th>#</th><th>Stage</th><th>Absolute (ms)</th><th>Delta (ms)</th></tr></thead>"
        "<tbody>" + "".join(rows) + "</tbody></table>"
    )


def _ms_labels(values: List[int]) -> List[str]:
    return [f"{v} ms" for v in values]


def build_figure(assembler: TimelineAssembler):
    """Horizontal bar chart of both chains with an Absolute / Duration toggle.

    Rows are placed at numeric positions so stages sharing a name keep
    their own bar.
    """
    import plotly.graph_objects as go  # type: ignore

    primary = assembler.primary.records
    mcu = assembler.secondary.records

    y_primary = list(range(len(primary)))
    y_mcu = list(range(len(primary), len(primary) + len(mcu)))
    ticktext = [PRIMARY_PREFIX + r.name for r in primary] + [MCU_PREFIX + r.name for r in mcu]

    abs_primary = [r.start_time for r in primary]
    abs_mcu = [r.start_time for r in mcu]
    del_primary = [r.delta_time for r in primary]
    del_mcu = [r.delta_time for r in mcu]

    fig = go.Figure()
    fig.add_trace(
        go.Bar(
            x=abs_primary,
            y=y_primary,
            base=[0] * len(primary),
            orientation="h",
            name="A53 / Linux",
            marker=dict(color="#1f77b4"),
            text=_ms_labels(abs_primary),
            textposition="outside",
            customdata=[r.name for r in primary],
            hovertemplate="%{customdata}<br>%{text}<extra></extra>",
        )
    )
    fig.add_trace(
        go.Bar(
            x=abs_mcu,
            y=y_mcu,
            base=[0] * len(mcu),
            orientation="h",
            name="MCU",
            marker=dict(color="#ff7f0e"),
            text=_ms_labels(abs_mcu),
            textposition="outside",
            customdata=[r.name for r in mcu],
            hovertemplate="%{customdata}<br>%{text}<extra></extra>",
        )
    )

    # Duration bars span [start, start + delta].
    absolute = dict(
        x=[abs_primary, abs_mcu],
        base=[[0] * len(primary), [0] * len(mcu)],
        text=[_ms_labels(abs_primary), _ms_labels(abs_mcu)],
    )
    duration = dict(
        x=[del_primary, del_mcu],
        base=[abs_primary, abs_mcu],
        text=[_ms_labels(del_primary), _ms_labels(del_mcu)],
    )

    rows = len(ticktext)
    fig.update_layout(
        barmode="overlay",
        height=max(420, 22 * rows + 160),
        margin=dict(l=20, r=40, t=60, b=50),
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="left", x=0),
        updatemenus=[
            dict(
                type="buttons",
                direction="right",
                x=1.0,
                xanchor="right",
                y=1.08,
                yanchor="bottom",
                buttons=[
                    dict(label="Absolute", method="restyle", args=[absolute]),
                    dict(label="Duration", method="restyle", args=[duration]),
                ],
            )
        ],
    )
    fig.update_xaxes(title_text="Boot Time (ms)", rangemode="tozero")
    fig.update_yaxes(
        tickmode="array",
        tickvals=y_primary + y_mcu,
        ticktext=ticktext,
        autorange="reversed",
    )
    return fig


def build_html_report(assembler: TimelineAssembler, hostname: str = "") -> str:
    title = html.escape(f"{hostname} Boot Time Report".strip())
    fig = build_figure(assembler)
    chart = fig.to_html(full_html=False, include_plotlyjs="inline", div_id="boot_time_chart")

    parts = [
        "<!doctype html><html><head>",
        "<meta charset='utf-8'>",
        "<meta name='viewport' content='width=device-width,initial-scale=1'>",
        f"<title>{title}</title>",
        f"<style>{PAGE_STYLE}</style>",
        "</head><body>",
        f"<h1>{title}</h1>",
        _summary_table(assembler.summary()),
        chart,
        _stage_table("Bootloader & Linux Stages", assembler.primary.records),
    ]
    if assembler.secondary.records:
        parts.append(_stage_table("MCU Stages", assembler.secondary.records))
    parts.append("</body></html>\n")
    return "\n".join(parts)


def maybe_write_html_report(*, out_path: str, assembler: TimelineAssembler, hostname: str = "") -> bool:
    """Write the HTML report.

    Returns True if written, False if skipped (e.g., missing dependency).
    """

    try:
        import plotly.graph_objects  # type: ignore  # noqa: F401
    except Exception:
        print(
            "NOTE: plotly is not installed; skipping HTML report. Install with: pip install plotly",
            file=sys.stderr,
        )
        return False

    try:
        page = build_html_report(assembler, hostname=hostname)
        with open(out_path, "w", encoding="utf-8") as f:
            f.write(page)
        return True
    except Exception as e:
        print(f"NOTE: Failed to write {out_path} ({type(e).__name__}: {e}); skipping", file=sys.stderr)
        return False
