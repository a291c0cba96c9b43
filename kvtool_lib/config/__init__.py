from .config import StoreConfig, config_path, load_config, open_store

__all__ = ["StoreConfig", "config_path", "load_config", "open_store"]
