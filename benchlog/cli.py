from __future__ import annotations

import argparse
import contextlib
import math
import os
import sys
import time
from pathlib import Path
from typing import Iterable, TextIO

from .errors import LoggerError
from .logger import create_logger
from .messages import Priority
from .report import (
    create_pct_string_cumulative,
    create_pct_string_intermediate,
    dump_record,
    latency_report_record,
    percentile_results,
)


def _open_samples(path: str) -> contextlib.AbstractContextManager[TextIO]:
    if path == "-":
        return contextlib.nullcontext(sys.stdin)
    return Path(path).open("r", encoding="utf-8")


def _iter_samples(lines: Iterable[str], logger) -> Iterable[float]:
    for lineno, line in enumerate(lines, start=1):
        text = line.strip()
        if not text or text.startswith("#"):
            continue
        try:
            value = float(text)
            if not math.isfinite(value):
                raise ValueError(text)
        except ValueError:
            logger.log_text(Priority.WARNING, "ignoring malformed latency sample: %r", text)
            logger.log_text(Priority.DEBUG, "malformed sample at line %d", lineno)
            continue
        if value < 0:
            logger.log_text(Priority.WARNING, "ignoring negative latency sample: %s", text)
            continue
        yield value


def main(argv: list[str] | None = None) -> int:
    logger, _text_handler, oper_handler = create_logger()

    parser = argparse.ArgumentParser(
        prog="benchlog",
        description="Summarize latency samples (seconds, one per line) into percentile reports.",
    )
    parser.add_argument("samples", nargs="?", default="-")
    parser.add_argument("--report-interval", type=int, default=0)
    parser.add_argument("--json", action="store_true")
    parser.add_argument("--log-help", action="store_true")
    log_group = parser.add_argument_group("log options")
    logger.options.add_arguments(log_group)

    args = parser.parse_args(argv)
    if args.log_help:
        logger.print_help()
        return 0
    logger.options.apply_overrides(logger.options.cli_overrides(args))
    logger.options.apply_env(os.environ)

    try:
        logger.init()
    except LoggerError:
        return 1

    try:
        percentiles = oper_handler.percentiles
        histogram = oper_handler.histogram
        start = time.monotonic()
        count = 0
        try:
            source = _open_samples(args.samples)
        except OSError as exc:
            logger.log_errno(Priority.FATAL, "cannot open %s:", args.samples, error=exc)
            return 1
        with source as handle:
            for value in _iter_samples(handle, logger):
                histogram.observe_ms(value * 1000.0)
                count += 1
                if args.report_interval > 0 and count % args.report_interval == 0:
                    results = percentile_results(histogram, percentiles)
                    logger.log_timestamp(
                        Priority.NOTICE,
                        time.monotonic() - start,
                        "samples: %d %s",
                        count,
                        create_pct_string_intermediate(percentiles, results),
                    )

        summary = histogram.summary()
        results = percentile_results(histogram, percentiles)
        logger.log_text(Priority.NOTICE, "Latency (ms):")
        logger.log_text(Priority.NOTICE, "         min:%30.2f", summary.min_ms)
        logger.log_text(Priority.NOTICE, "         avg:%30.2f", summary.avg_ms)
        logger.log_text(Priority.NOTICE, "         max:%30.2f", summary.max_ms)
        cumulative = create_pct_string_cumulative(percentiles, results)
        if cumulative:
            logger.log_text(Priority.NOTICE, "%s", cumulative.rstrip("\n"))
        logger.log_text(Priority.NOTICE, "         sum:%30.2f", summary.sum_ms)
        if oper_handler.report_histogram:
            logger.log_text(Priority.NOTICE, "%s", histogram.render().rstrip("\n"))
        if args.json:
            record = latency_report_record(percentiles, results, histogram=histogram)
            print(dump_record(record).decode("utf-8"), end="", file=logger.stream, flush=True)
        return 0
    finally:
        logger.done()


if __name__ == "__main__":
    raise SystemExit(main())
