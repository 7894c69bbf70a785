from .config_loader import BotSettings, ConfigError, load_settings

__all__ = ["BotSettings", "ConfigError", "load_settings"]
