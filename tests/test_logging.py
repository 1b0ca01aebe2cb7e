import json
import logging

from recordmapper.utils.logging_utils import (
    ContextAwareFormatter,
    LoggerManager,
    clear_log_context,
    get_log_context,
    log_context,
    update_log_context,
)


def _record(message="hello %s", args=("world",)):
    return logging.LogRecord("recordmapper.mapper", logging.INFO, __file__, 1, message, args, None)


class TestLogContext:
    def test_context_is_scoped(self):
        with log_context(model="User", action="create"):
            assert get_log_context() == {"model": "User", "action": "create"}
            with log_context(action="update", table=None):
                assert get_log_context() == {"model": "User", "action": "update"}
        assert get_log_context() == {}

    def test_update_and_clear(self):
        update_log_context(model="Note", table="notes")
        update_log_context(table=None)
        assert get_log_context() == {"model": "Note"}

        clear_log_context()
        assert get_log_context() == {}


class TestFormatter:
    def test_text_format_appends_context(self):
        formatter = ContextAwareFormatter("%(levelname)s %(message)s")

        with log_context(model="User", action="create"):
            line = formatter.format(_record())

        assert line == "INFO hello world | action=create model=User"

    def test_json_format_includes_context(self):
        formatter = ContextAwareFormatter(json_format=True, static_fields={"service": "records"})

        with log_context(model="User"):
            payload = json.loads(formatter.format(_record()))

        assert payload["message"] == "hello world"
        assert payload["logger"] == "recordmapper.mapper"
        assert payload["service"] == "records"
        assert payload["context"] == {"model": "User"}


class TestLoggerManager:
    def test_category_logger_writes_its_file(self, tmp_path):
        manager = LoggerManager(base_dir=str(tmp_path))
        logger = manager.get_logger("mapper")

        logger.info("Created User id=%s", 1)
        for handler in logger.handlers:
            handler.flush()

        assert manager.get_logger("MAPPER") is logger
        assert "Created User id=1" in (tmp_path / "mapper.log").read_text(encoding="utf-8")
        manager.shutdown()

    def test_unknown_category_is_registered(self, tmp_path):
        manager = LoggerManager(base_dir=str(tmp_path))

        manager.get_logger("imports").warning("loaded")
        manager.shutdown()

        assert (tmp_path / "imports.log").exists()

    def test_clear_log_removes_files(self, tmp_path):
        manager = LoggerManager(base_dir=str(tmp_path))
        manager.get_logger("alerts").info("flash alert added")

        deleted = manager.clear_log("alerts")

        assert deleted == [tmp_path / "alerts.log"]
        assert not (tmp_path / "alerts.log").exists()

    def test_shutdown_only_detaches_own_handlers(self, tmp_path):
        first = LoggerManager(base_dir=str(tmp_path / "a"))
        second = LoggerManager(base_dir=str(tmp_path / "b"))
        logger = first.get_logger("shutdown_probe")
        second.get_logger("shutdown_probe")

        second.shutdown()

        assert len(logger.handlers) == 1
        first.shutdown()
        assert logger.handlers == []
