from .loader import WatchdogSettings, default_config_path, load_settings

__all__ = ["WatchdogSettings", "default_config_path", "load_settings"]
