from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

from portalgate.core.guard import RouteGuard
from portalgate.core.logger import get_logger, setup_logging
from portalgate.core.simulation import RoleSimulationContext

from .helpers.builders import signed_in_identity


def test_components_log_under_the_portalgate_root(tmp_path):
    root = setup_logging(str(tmp_path), level="debug")
    try:
        assert root.name == "portalgate"
        assert root.level == logging.DEBUG
        ident = signed_in_identity()
        guard = RouteGuard(identity=ident, simulation=RoleSimulationContext(identity=ident))
        assert guard.logger is get_logger("guard")
        assert guard.logger.name == "portalgate.guard"
        assert guard.logger.parent is root

        guard.logger.info("guard ready")
        for h in root.handlers:
            h.flush()
        with open(os.path.join(str(tmp_path), "portalgate.log"), "r", encoding="utf-8") as f:
            assert "| portalgate.guard | guard ready" in f.read()
    finally:
        for h in list(root.handlers):
            if isinstance(h, RotatingFileHandler):
                h.close()
                root.removeHandler(h)


def test_setup_logging_does_not_stack_handlers(tmp_path):
    root = setup_logging(str(tmp_path))
    try:
        before = len(root.handlers)
        setup_logging(str(tmp_path))
        assert len(root.handlers) == before
    finally:
        for h in list(root.handlers):
            if isinstance(h, RotatingFileHandler):
                h.close()
                root.removeHandler(h)
