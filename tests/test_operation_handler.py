import pytest

from benchlog.errors import InvalidConfig, ResourceInitFailed
from benchlog.handlers import (
    OPER_LOG_GRANULARITY,
    OPER_LOG_MAX_VALUE,
    OPER_LOG_MIN_VALUE,
    OperationHandler,
)
from benchlog.histogram import LatencyHistogram
from benchlog.logger import Logger, create_logger
from benchlog.messages import MessageType


def _logger(percentile=None, histogram=None):
    logger, _text, oper = create_logger()
    if percentile is not None:
        logger.options.set_value("percentile", percentile)
    if histogram is not None:
        logger.options.set_value("histogram", histogram)
    return logger, oper


def test_defaults_to_95th_percentile() -> None:
    logger, oper = _logger()
    logger.init()
    assert oper.percentiles == (95.0,)
    assert oper.report_histogram is False
    assert oper.histogram.size == OPER_LOG_GRANULARITY
    assert oper.histogram.range_min == OPER_LOG_MIN_VALUE
    assert oper.histogram.range_max == OPER_LOG_MAX_VALUE


def test_percentiles_kept_in_list_order() -> None:
    logger, oper = _logger("99.9, 50,0,100")
    logger.init()
    assert oper.percentiles == (99.9, 50.0, 0.0, 100.0)


def test_out_of_range_percentile_fails_init(capsys) -> None:
    logger, oper = _logger("-1,50")
    with pytest.raises(InvalidConfig):
        logger.init()
    assert capsys.readouterr().out == "FATAL: Invalid value for --percentile: -1.000000\n"
    assert oper.percentiles == ()
    assert oper.histogram.initialized is False
    assert logger.initialized is False


def test_percentile_above_100_fails_init(capsys) -> None:
    logger, _oper = _logger("50,100.5")
    with pytest.raises(InvalidConfig):
        logger.init()
    assert "Invalid value for --percentile: 100.500000" in capsys.readouterr().out


def test_unparsable_percentile_fails_init(capsys) -> None:
    logger, _oper = _logger("p99")
    with pytest.raises(InvalidConfig):
        logger.init()
    assert capsys.readouterr().out == "FATAL: Invalid value for --percentile: p99\n"


def test_histogram_without_percentiles_fails_init(capsys) -> None:
    logger, oper = _logger("", True)
    with pytest.raises(InvalidConfig):
        logger.init()
    assert capsys.readouterr().out == (
        "FATAL: --histogram cannot be used with --percentile=NULL\n"
    )
    assert oper.histogram.initialized is False


def test_histogram_with_percentile_succeeds() -> None:
    logger, oper = _logger("95", "on")
    logger.init()
    assert logger.initialized is True
    assert oper.percentiles == (95.0,)
    assert oper.report_histogram is True


def test_empty_percentile_list_disables_reporting() -> None:
    logger, oper = _logger("")
    logger.init()
    assert oper.percentiles == ()


def test_done_releases_histogram() -> None:
    logger, oper = _logger("50,95")
    logger.init()
    oper.histogram.observe_ms(3.0)
    logger.done()
    assert oper.histogram.initialized is False
    assert oper.histogram.total == 0
    assert oper.percentiles == ()


def test_histogram_init_failure_propagates() -> None:
    class BrokenHistogram(LatencyHistogram):
        def init(self, size, range_min, range_max):
            raise ResourceInitFailed("no memory for buckets")

    logger = Logger()
    logger.add_handler(MessageType.OPERATION, OperationHandler(BrokenHistogram()))
    with pytest.raises(ResourceInitFailed, match="no memory for buckets"):
        logger.init()
    assert logger.initialized is False
