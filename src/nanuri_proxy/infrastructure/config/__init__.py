from __future__ import annotations

from .load import load_config
from .schema import AppConfig, EnvOverrides, PortalConfig, SearchConfig

__all__ = ["AppConfig", "EnvOverrides", "PortalConfig", "SearchConfig", "load_config"]
