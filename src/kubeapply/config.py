"""Runtime configuration, read from the environment then overridden by CLI flags."""
import logging
import os
from dataclasses import dataclass, replace
from typing import Any, Optional

from kubeapply.decoding.pipeline import DEFAULT_DEPTH
from kubeapply.decoding.splitter import DEFAULT_MAX_READ

logger = logging.getLogger("kubeapply.config")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Invalid {name} '{raw}'. Falling back to default: {default}")
        return default
    if value < 1:
        logger.warning(f"{name} must be positive. Falling back to default: {default}")
        return default
    return value


@dataclass
class ApplyConfig:
    """Everything the CLI needs to build the client and the pipeline."""
    context: str = ""
    kubeconfig: Optional[str] = None
    depth: int = DEFAULT_DEPTH
    max_read: int = DEFAULT_MAX_READ
    discover: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "ApplyConfig":
        return cls(
            context=os.getenv("KUBEAPPLY_CONTEXT", ""),
            kubeconfig=os.getenv("KUBECONFIG") or None,
            depth=_env_int("KUBEAPPLY_BUFFER_DEPTH", DEFAULT_DEPTH),
            max_read=_env_int("KUBEAPPLY_MAX_READ", DEFAULT_MAX_READ),
            discover=os.getenv("KUBEAPPLY_DISCOVER", "false").lower() == "true",
            log_level=os.getenv("KUBEAPPLY_LOG_LEVEL", "INFO").upper(),
        )

    def override(self, **values: Any) -> "ApplyConfig":
        """Returns a copy with every non-None value applied."""
        return replace(self, **{k: v for k, v in values.items() if v is not None})
