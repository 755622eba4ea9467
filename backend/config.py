"""
Agent configuration from environment variables and --key=value CLI flags.
"""

import os
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_BRIDGE_URL = "ws://localhost:3055"
DEFAULT_CHANNEL = "style-audit-default"


@dataclass
class AgentConfig:
    bridge_url: str = DEFAULT_BRIDGE_URL
    channel: str = DEFAULT_CHANNEL
    command_timeout: float = 30.0
    progress_yield_seconds: float = 0.01
    ruleset: str = "baseline"
    excluded_prefixes: Tuple[str, ...] = field(default_factory=tuple)
    log_level: str = "INFO"
    export_path: Optional[str] = None


def _split_prefixes(raw: Optional[str]) -> Tuple[str, ...]:
    if not raw:
        return ()
    return tuple(p.strip().lower() for p in raw.split(",") if p.strip())


def _float(raw: str, name: str, default: float) -> float:
    try:
        return float(raw)
    except (TypeError, ValueError):
        logger.warning(f"Invalid value for {name}: {raw!r}; using {default}")
        return default


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _log_level(raw: Optional[str], name: str, default: str = "INFO") -> str:
    level = (raw or "").strip().upper()
    if level not in LOG_LEVELS:
        logger.warning(f"Invalid value for {name}: {raw!r}; using {default}")
        return default
    return level


def get_config(argv: Optional[List[str]] = None) -> AgentConfig:
    """Get configuration from environment variables, overridden by CLI args."""
    config = AgentConfig(
        bridge_url=os.getenv("BRIDGE_URL", DEFAULT_BRIDGE_URL),
        channel=os.getenv("FIGMA_CHANNEL") or DEFAULT_CHANNEL,
        command_timeout=_float(os.getenv("FIGMA_TOOL_TIMEOUT", "30.0"), "FIGMA_TOOL_TIMEOUT", 30.0),
        progress_yield_seconds=_float(os.getenv("PROGRESS_YIELD_SECONDS", "0.01"), "PROGRESS_YIELD_SECONDS", 0.01),
        ruleset=os.getenv("STYLE_RULESET", "baseline"),
        excluded_prefixes=_split_prefixes(os.getenv("STYLE_EXCLUDED_PREFIXES")),
        log_level=_log_level(os.getenv("LOG_LEVEL", "INFO"), "LOG_LEVEL"),
    )

    for arg in argv or []:
        if arg.startswith("--channel="):
            config.channel = arg.split("=", 1)[1]
        elif arg.startswith("--bridge-url="):
            config.bridge_url = arg.split("=", 1)[1]
        elif arg.startswith("--timeout="):
            config.command_timeout = _float(arg.split("=", 1)[1], "--timeout", config.command_timeout)
        elif arg.startswith("--yield="):
            config.progress_yield_seconds = _float(arg.split("=", 1)[1], "--yield", config.progress_yield_seconds)
        elif arg.startswith("--ruleset="):
            config.ruleset = arg.split("=", 1)[1]
        elif arg.startswith("--exclude="):
            config.excluded_prefixes = _split_prefixes(arg.split("=", 1)[1])
        elif arg.startswith("--log-level="):
            config.log_level = _log_level(arg.split("=", 1)[1], "--log-level")
        elif arg.startswith("--export="):
            config.export_path = arg.split("=", 1)[1]
        else:
            logger.warning(f"Ignoring unknown argument: {arg}")

    return config
