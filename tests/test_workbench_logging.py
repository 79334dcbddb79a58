from __future__ import annotations

import logging

from workbench.logging_config import setup_logging


def test_setup_logging_replaces_handlers_and_writes_the_file(tmp_path) -> None:
    path = tmp_path / "workbench.log"
    name = "workbench.test_logging"
    try:
        setup_logging(logging.INFO, str(path), name=name)
        logger = setup_logging(logging.INFO, str(path), name=name)
        assert len(logger.handlers) == 2

        logging.getLogger(f"{name}.panel").info("prim: generated artifact #3")
        for handler in logger.handlers:
            handler.flush()
        text = path.read_text(encoding="utf-8")
        assert "prim: generated artifact #3" in text
        assert f"[{name}.panel]" in text
    finally:
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
