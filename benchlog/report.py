from __future__ import annotations

import io
from typing import Any, Sequence

import orjson

from .histogram import LatencyHistogram

INTERMEDIATE_FORMAT = "lat (ms,%5.2f%%): %4.2f "
CUMULATIVE_FORMAT = "         %5.2fth percentile:%25.2f\n"


def sec2ms(value: float) -> float:
    return value * 1000.0


def create_pct_string(
    percentiles: Sequence[float], results: Sequence[float], format_string: str
) -> str:
    """Render one ``format_string`` entry per (percentile, result) pair.

    ``results`` are in seconds and come out in milliseconds.
    """
    if len(percentiles) != len(results):
        raise ValueError(
            f"percentiles/results length mismatch: {len(percentiles)} != {len(results)}"
        )
    out = io.StringIO()
    for pct, result in zip(percentiles, results):
        out.write(format_string % (pct, sec2ms(result)))
    return out.getvalue()


def create_pct_string_intermediate(
    percentiles: Sequence[float], results: Sequence[float]
) -> str:
    return create_pct_string(percentiles, results, INTERMEDIATE_FORMAT)


def create_pct_string_cumulative(
    percentiles: Sequence[float], results: Sequence[float]
) -> str:
    return create_pct_string(percentiles, results, CUMULATIVE_FORMAT)


def percentile_results(
    histogram: LatencyHistogram, percentiles: Sequence[float]
) -> list[float]:
    """Query the histogram for each percentile, in seconds."""
    return [histogram.percentile_ms(pct) / 1000.0 for pct in percentiles]


def latency_report_record(
    percentiles: Sequence[float],
    results: Sequence[float],
    *,
    histogram: LatencyHistogram | None = None,
) -> dict[str, Any]:
    if len(percentiles) != len(results):
        raise ValueError(
            f"percentiles/results length mismatch: {len(percentiles)} != {len(results)}"
        )
    record: dict[str, Any] = {
        "record_type": "latency_report",
        "percentiles": [
            {"percentile": float(pct), "latency_ms": sec2ms(result)}
            for pct, result in zip(percentiles, results)
        ],
    }
    if histogram is not None:
        record["summary"] = histogram.summary().to_dict()
    return record


def dump_record(record: dict[str, Any]) -> bytes:
    return orjson.dumps(record, option=orjson.OPT_APPEND_NEWLINE)
