"""Structlog-based logging configuration for audiodeck.

structlog loggers run through the processor chain configured here and render
either JSON (containers, log shippers) or colored console lines (development).
Plain ``logging.getLogger(__name__)`` module loggers share the same stdout
handler and level but print their message only, without the structlog context.
"""

import logging
import os
import subprocess
import sys
from collections.abc import Callable
from typing import Any

import structlog

from audiodeck.config.models import AudioDeckConfig


def is_docker_environment() -> bool:
    """Check if running in a Docker container."""
    return os.path.exists("/.dockerenv") or os.environ.get("DOCKER_CONTAINER") == "true"


def _run_git(*args: str) -> str:
    result = subprocess.run(["git", *args], capture_output=True, text=True, timeout=5)
    return result.stdout.strip() if result.returncode == 0 else "unknown"


def get_git_version() -> str:
    """Return ``branch@commit`` for the checkout, or "unknown" without git."""
    try:
        branch = _run_git("rev-parse", "--abbrev-ref", "HEAD")
        commit = _run_git("rev-parse", "--short=8", "HEAD")
        return f"{branch}@{commit}"
    except (subprocess.TimeoutExpired, subprocess.SubprocessError, FileNotFoundError):
        return "unknown"


def get_deployment_environment() -> str:
    """Get deployment environment with 'unknown' fallback."""
    if is_docker_environment():
        return "docker"
    if os.environ.get("AUDIODECK_ENV") == "development":
        return "development"
    return "unknown"


def _add_static_context(extra_fields: dict[str, str]) -> Callable:
    """Processor to add static context fields to all log entries."""

    def processor(
        logger: structlog.BoundLogger, method_name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        event_dict.update(extra_fields)
        return event_dict

    return processor


def _select_renderer(config: AudioDeckConfig, is_docker: bool, is_development: bool) -> Any:  # noqa: ANN401
    use_json = config.logging.json_logs
    if use_json is None:
        use_json = is_docker and not is_development
    if use_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def _configure_processors(config: AudioDeckConfig, is_docker: bool, is_development: bool) -> list:
    """Build the processor chain: context, level, timestamp, then the renderer."""
    static_context = {
        "service": "audiodeck",
        "version": get_git_version(),
        "deployment": get_deployment_environment(),
        "meter_interval_ms": str(config.volmeter_update_interval_ms),
        **config.logging.extra_fields,
    }

    processors: list = [
        structlog.contextvars.merge_contextvars,
        _add_static_context(static_context),
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="ISO"),
    ]
    if config.logging.include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder())
    processors.append(_select_renderer(config, is_docker, is_development))
    return processors


def _configure_handlers(config: AudioDeckConfig) -> None:
    """Replace root handlers with a single stdout handler at the configured level."""
    level = logging.getLevelName(config.logging.level)
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
    root_logger.setLevel(level)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(level)
    stdout_handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(stdout_handler)


def configure_structlog(config: AudioDeckConfig) -> None:
    """Configure structlog and stdlib logging from ``config.logging``.

    Audio callbacks log from PortAudio and heartbeat threads, so loggers are
    cached on first use and bound context travels through contextvars.
    """
    is_docker = is_docker_environment()
    is_development = os.environ.get("AUDIODECK_ENV", "production") == "development"

    structlog.configure(
        processors=_configure_processors(config, is_docker, is_development),
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(config.logging.level)
        ),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _configure_handlers(config)

    structlog.get_logger(__name__).info(
        "Structured logging configured",
        log_level=config.logging.level,
        environment=get_deployment_environment(),
        heartbeat_period_ms=config.heartbeat_period_ms,
    )

