# auth_relay/core/logging.py
import logging

LOG_FORMAT = "%(asctime)s %(levelname)-5s %(name)s %(message)s"

# Third-party loggers that are noisy below WARNING (credential discovery,
# endpoint resolution, uvicorn's own access log duplicating ours).
_QUIET_LOGGERS = ("boto3", "botocore", "urllib3", "uvicorn.access")


def _level_from_name(name: str) -> int:
    level = logging.getLevelName((name or "").upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level_name: str = "INFO") -> None:
    """
    Install the relay's log format on the root logger.

    Existing root handlers (a host process, pytest) are left in place; only
    the level is applied then.
    """
    level = _level_from_name(level_name)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
