from settings.config import CallmapConfig, ConfigError, load_config

__all__ = ["CallmapConfig", "ConfigError", "load_config"]
