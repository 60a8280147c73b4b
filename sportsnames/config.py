"""
Configuration management.

Loads settings from environment variables. Host apps can extend
this config dict with their own keys.
"""

import os

config = {
    "mongo_conn_str": os.environ.get("MONGO_CONN_STR") or os.environ.get("MONGODB_URI", ""),
    "cache_config_path": os.environ.get("SPORTSNAMES_CONFIG", ""),
    "store_path": os.environ.get("SPORTSNAMES_STORE_PATH", ""),
    "backend": os.environ.get("SPORTSNAMES_BACKEND", ""),
    "SECRET_KEY": os.environ.get("SECRET_KEY", ""),
}


def register_config_keys(keys: dict):
    """
    Register additional config keys from a host app.

    Args:
        keys: Dict of key -> value pairs to add to the global config.
              Existing keys are NOT overwritten.
    """
    for k, v in keys.items():
        if k not in config:
            config[k] = v
