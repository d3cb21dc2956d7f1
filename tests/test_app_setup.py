import logging

import pytest
from sqlalchemy import text

from app.database import build_engine, normalize_database_url
from app.utils.logging_config import configure_logging, DISPATCH_LOGGERS


def test_normalize_database_url():
    assert normalize_database_url("postgres://u:p@db:5432/wasel") == "postgresql://u:p@db:5432/wasel"
    assert normalize_database_url("postgresql://u:p@db/wasel") == "postgresql://u:p@db/wasel"
    assert normalize_database_url("sqlite:///./wasel.db") == "sqlite:///./wasel.db"


def test_sqlite_engine_enforces_foreign_keys(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'fk.db'}")
    try:
        with engine.connect() as conn:
            assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1
    finally:
        engine.dispose()


@pytest.fixture
def clean_logging():
    yield

    def strip(logger):
        for handler in [h for h in logger.handlers if getattr(h, "_wasel", False)]:
            logger.removeHandler(handler)
            handler.close()

    strip(logging.getLogger())
    for name in DISPATCH_LOGGERS:
        strip(logging.getLogger(name))


def test_configure_logging_writes_files(tmp_path, clean_logging):
    log_dir = tmp_path / "logs"
    configure_logging(str(log_dir))

    logging.getLogger("app.services.assignment_service").info("Order ORD-1 assigned to driver d1")
    logging.getLogger("app.services.order_service").error("Failed to update order ORD-2")
    for handler in logging.getLogger().handlers + logging.getLogger(DISPATCH_LOGGERS[0]).handlers:
        handler.flush()

    assert "assigned to driver d1" in (log_dir / "dispatch.log").read_text()
    assert "ORD-2" not in (log_dir / "dispatch.log").read_text()
    assert "Failed to update order ORD-2" in (log_dir / "error.log").read_text()
    assert "assigned to driver d1" in (log_dir / "app.log").read_text()


def test_configure_logging_twice_does_not_duplicate(tmp_path, clean_logging):
    configure_logging(str(tmp_path))
    configure_logging(str(tmp_path))

    installed = [h for h in logging.getLogger().handlers if getattr(h, "_wasel", False)]
    assert len(installed) == 3
    for name in DISPATCH_LOGGERS:
        assert len([h for h in logging.getLogger(name).handlers if getattr(h, "_wasel", False)]) == 1
