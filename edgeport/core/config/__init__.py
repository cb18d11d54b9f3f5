from .config_loader import get_config_path, get_settings, load_unified_config, reload_configs
from .settings import ConfigError, ConversionSettings, EdgeportSettings, TransformSettings

__all__ = [
    "ConfigError",
    "ConversionSettings",
    "EdgeportSettings",
    "TransformSettings",
    "get_config_path",
    "get_settings",
    "load_unified_config",
    "reload_configs",
]
