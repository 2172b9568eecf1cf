from __future__ import annotations

import argparse
import json
import os
import sys
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import uvicorn

from portalgate.core.config import ConfigFsPaths, ConfigManager
from portalgate.core.directory import Directory, InMemoryDirectory, RestDirectory
from portalgate.core.errors import ConfigError
from portalgate.core.events import EventLogger
from portalgate.core.identity import InMemoryIdentityProvider, Principal, UserRole
from portalgate.core.logger import setup_logging
from portalgate.core.session import PortalSession
from portalgate.web.api import create_app


def _parse_dev_user(raw: str) -> Principal:
    """``id:role[:display name]`` -> Principal."""
    parts = raw.split(":", 2)
    if len(parts) < 2 or not parts[0]:
        raise argparse.ArgumentTypeError("expected id:role[:display name]")
    try:
        role = UserRole(parts[1])
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"unknown role '{parts[1]}'") from e
    return Principal(id=parts[0], role=role, display_name=parts[2] if len(parts) > 2 else parts[0])


def _build_directory(cfg) -> Directory:  # noqa: ANN001
    if cfg.directory.base_url:
        return RestDirectory(base_url=cfg.directory.base_url, timeout_seconds=cfg.directory.timeout_seconds, headers=dict(cfg.directory.headers))
    return InMemoryDirectory()


def main(argv: Optional[list[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="PortalGate authorization and session-lifecycle shell")
    ap.add_argument("--root", default=".", help="Directory holding config/ and logs/.")
    ap.add_argument("--dev-user", type=_parse_dev_user, default=None, help="Sign in a local principal (id:role[:name]).")
    ap.add_argument("--print-config", action="store_true", help="Load and validate config, print it and exit.")
    args = ap.parse_args(argv)

    fs = ConfigFsPaths(args.root)
    try:
        cfg = ConfigManager(fs=fs).load_all()
    except ConfigError as e:
        print(f"Config error: {e.user_message}", file=sys.stderr)
        return 2

    logger = setup_logging(fs.logs_dir, level=cfg.app.log_level)
    if args.print_config:
        print(json.dumps(cfg.model_dump(mode="json"), indent=2, sort_keys=True))
        return 0
    if not cfg.web.enabled:
        logger.info("Web shell disabled in web.json; nothing to serve.")
        return 0

    identity = InMemoryIdentityProvider()
    executor = ThreadPoolExecutor(max_workers=cfg.web.details_workers, thread_name_prefix="portalgate-details")
    session = PortalSession.from_config(cfg, identity=identity, directory=_build_directory(cfg), log_dir=fs.logs_dir, details_executor=executor)
    if args.dev_user is not None:
        identity.sign_in(args.dev_user)
    else:
        identity.finish_loading()

    app = create_app(session, event_logger=EventLogger(os.path.join(fs.logs_dir, "web.jsonl")), logger=logger.getChild("web"))
    logger.info("PortalGate web shell on http://%s:%s", cfg.web.bind_host, cfg.web.port)
    try:
        uvicorn.run(app, host=cfg.web.bind_host, port=cfg.web.port, log_level=cfg.app.log_level.lower())
    finally:
        session.close()
        executor.shutdown(wait=False)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
