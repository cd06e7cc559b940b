"""Pre-flight check of a deployment: required settings, database, channel webhook.

Exit status is 0 when every check passes and 1 otherwise.
"""

from __future__ import annotations

import argparse
import logging
from typing import Callable, List, Optional, Tuple

import requests
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from authmon.config import ServiceConfig, configure_logging, load_config
from authmon.db import make_engine

logger = logging.getLogger("authmon.verify")


def check_env(config: ServiceConfig) -> Tuple[bool, str]:
    missing = [name for name, value in (
        ("AUTHMON_AUTH_KEY", config.auth_key),
        ("AUTHMON_WEBHOOK_URL", config.webhook_url),
    ) if not value]
    if missing:
        return False, f"missing environment variables: {', '.join(missing)}"
    return True, "environment variables set"


def check_database(config: ServiceConfig) -> Tuple[bool, str]:
    engine = make_engine(config.database_url)
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        return False, f"database connection failed: {e}"
    finally:
        engine.dispose()
    return True, "database connection successful"


def check_webhook(config: ServiceConfig, http=requests) -> Tuple[bool, str]:
    if not config.webhook_url:
        return False, "webhook URL not configured"
    try:
        r = http.get(config.webhook_url, timeout=config.dispatch_timeout_seconds)
    except requests.RequestException as e:
        return False, f"webhook unreachable: {e}"
    # any HTTP answer means the host is up; a GET on a POST-only hook may 405
    return True, f"webhook reachable (HTTP {r.status_code})"


CHECKS: List[Tuple[str, Callable[[ServiceConfig], Tuple[bool, str]]]] = [
    ("env", check_env),
    ("database", check_database),
    ("webhook", check_webhook),
]


def verify(config: ServiceConfig) -> bool:
    """Run checks in order and stop at the first failure."""
    for name, check in CHECKS:
        ok, detail = check(config)
        if not ok:
            logger.error("%s check failed: %s", name, detail)
            return False
        logger.info("%s: %s", name, detail)
    logger.info("Setup verification complete")
    return True


def main(argv: Optional[List[str]] = None) -> int:
    p = argparse.ArgumentParser(description="Verify configuration, database and channel webhook before serving.")
    p.add_argument("--log-level", default="INFO")
    args = p.parse_args(argv)

    configure_logging(args.log_level)
    return 0 if verify(load_config()) else 1


if __name__ == "__main__":
    raise SystemExit(main())
