# dirgate/logging.py
import logging
from typing import Any, Dict, Optional

SECRET_KEYS = {"password", "token", "session"}


def configure_logging(level: Optional[str] = None):
    logging.basicConfig(
        level=(level or "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def redact_str(s: str) -> str:
    # keep enough of the value to correlate log lines
    if len(s) <= 2:
        return "*" * len(s)
    return s[0] + "*" * (len(s) - 2) + s[-1]


def redact_args(args: Dict[str, Any]) -> Dict[str, Any]:
    safe = dict(args)
    for k, v in list(safe.items()):
        if k.lower() in SECRET_KEYS:
            safe[k] = "[redacted]"
        elif isinstance(v, str):
            safe[k] = redact_str(v)
    return safe


def log_auth_event(logger: logging.Logger, event: str, args: Dict[str, Any]):
    logger.info("auth %s %s", event, redact_args(args))
