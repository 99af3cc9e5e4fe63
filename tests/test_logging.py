from pathlib import Path

import pytest
from loguru import logger

from gcengine.infra.retry import retry
from gcengine.logging import LogConfig, package_records, setup_logging, teardown_logging

pytestmark = [pytest.mark.unit]


async def _retried_once() -> None:
    calls = 0

    @retry(on=ValueError, max_attempts=2, base_delay=0)
    async def flaky() -> None:
        nonlocal calls
        calls += 1
        if calls == 1:
            raise ValueError("first call fails")

    await flaky()


async def test_library_is_silent_by_default():
    messages: list[str] = []
    sink = logger.add(messages.append, format="{message}")
    try:
        await _retried_once()
    finally:
        logger.remove(sink)

    assert not any("Retry" in m for m in messages)


async def test_file_handler_receives_package_logs(tmp_path: Path):
    log_file = tmp_path / "gcengine.log"
    handlers = setup_logging(LogConfig(console=False, file=str(log_file)))
    try:
        await _retried_once()
    finally:
        teardown_logging(handlers)

    text = log_file.read_text()
    assert "Retry 1/2 after ValueError" in text
    assert "| retry - " in text


def test_teardown_removes_handlers():
    handlers = setup_logging(LogConfig(level="DEBUG"))
    assert len(handlers) == 1

    teardown_logging(handlers)

    with pytest.raises(ValueError):
        logger.remove(handlers[0])


def test_host_extra_survives_setup(tmp_path: Path):
    records: list[dict] = []
    logger.configure(extra={"request_id": "r1"})
    sink = logger.add(lambda m: records.append(dict(m.record["extra"])), format="{message}")
    handlers = setup_logging(LogConfig(console=False, file=str(tmp_path / "gcengine.log")))
    try:
        logger.info("host message")
    finally:
        teardown_logging(handlers)
        logger.remove(sink)
        logger.configure(extra={})

    assert records == [{"request_id": "r1"}]


def test_package_sinks_see_only_package_records(tmp_path: Path):
    log_file = tmp_path / "gcengine.log"
    handlers = setup_logging(LogConfig(console=False, file=str(log_file)))
    try:
        logger.info("from the host app")
        logger.patch(lambda r: r.update(name="gcengine.compute.service")).info("bare package record")
    finally:
        teardown_logging(handlers)

    text = log_file.read_text()
    assert "from the host app" not in text
    assert "| gcengine - bare package record" in text


class TestPackageRecords:
    def test_defaults_component(self):
        record = {"name": "gcengine.api.client", "extra": {}}
        assert package_records(record)
        assert record["extra"] == {"component": "gcengine"}

    def test_keeps_bound_component(self):
        record = {"name": "gcengine", "extra": {"component": "retry"}}
        assert package_records(record)
        assert record["extra"] == {"component": "retry"}

    @pytest.mark.parametrize("name", ["gcengine_extras.plugin", "app.main", None])
    def test_rejects_other_modules(self, name):
        record = {"name": name, "extra": {}}
        assert not package_records(record)
        assert record["extra"] == {}
