from .settings import Settings, PolicySettings, StorageSettings, AppSettings, get_settings

__all__ = ["Settings", "PolicySettings", "StorageSettings", "AppSettings", "get_settings"]
