##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
This module provides functionality for locating and loading the application
configuration file (`app.yaml`) and filling in defaults for anything it omits.

It houses the `CONFIG` object used when no explicit configuration is handed to
a `BackupSystemTable` or a store.
"""
import logging
import os
from typing import Dict, Optional

from backup_meta.config import Config
from backup_meta.config.config_filepaths import APP_FILENAME, BACKUP_META_HOME, CONFIG_PATH_FILE, DEFAULT_SQLITE_PATH
from backup_meta.utils import fill_defaults, load_yaml


LOG: logging.Logger = logging.getLogger(__name__)

CONFIG: Optional[Config] = None
IS_LOCAL_MODE: bool = False

DEFAULT_SYSTEM_TABLE_NAME: str = "backup:system"
DEFAULT_AVAILABILITY_TIMEOUT: float = 60.0
DEFAULT_POLL_INTERVAL: float = 0.1


def set_local_mode(enable: bool = True):
    """
    Sets backup_meta to run in local mode, which keeps all records in memory
    and doesn't require a configuration file.

    Args:
        enable (bool): True to enable local mode, False to disable it.
    """
    global IS_LOCAL_MODE  # pylint: disable=global-statement
    IS_LOCAL_MODE = enable
    if enable:
        LOG.info("Running backup_meta in local mode (no configuration file required)")


def is_local_mode() -> bool:
    """
    Checks if backup_meta is running in local mode.

    Returns:
        True if running in local mode, False otherwise.
    """
    return IS_LOCAL_MODE


def load_config(filepath: str) -> Optional[Dict]:
    """
    Reads a YAML configuration file and returns its contents as a dictionary.

    Args:
        filepath (str): The path to the YAML configuration file.

    Returns:
        A dictionary containing the contents of the YAML file or None if file doesn't exist.
    """
    if not os.path.isfile(filepath):
        LOG.info(f"No app config file at {filepath}")
        return None
    LOG.info(f"Reading app config from file {filepath}")
    return load_yaml(filepath) or {}


def find_config_file(path: str = None) -> Optional[str]:
    """
    Locate the application configuration file (`app.yaml`).

    If no directory is provided, uses a fallback sequence:
      1. Check for `app.yaml` in the current working directory.
      2. Check if `CONFIG_PATH_FILE` exists and points to a valid config file.
      3. Check for `app.yaml` in the `BACKUP_META_HOME` directory.

    Args:
        path (str, optional): A specific directory to look for `app.yaml`.

    Returns:
        The full path to the `app.yaml` file if found, otherwise `None`.
    """
    if path is None:
        local_app = os.path.join(os.getcwd(), APP_FILENAME)
        if os.path.isfile(local_app):
            return local_app

        if os.path.isfile(CONFIG_PATH_FILE):
            with open(CONFIG_PATH_FILE, "r") as f:
                config_path = f.read().strip()
            if os.path.isfile(config_path):
                return config_path

        path_app = os.path.join(BACKUP_META_HOME, APP_FILENAME)
        if os.path.isfile(path_app):
            return path_app

        return None

    if os.path.isfile(path):
        return path

    app_path = os.path.join(path, APP_FILENAME)
    if os.path.exists(app_path):
        return app_path

    return None


def get_default_config() -> Dict:
    """
    Creates the default configuration.

    In local mode the store is an in-memory store; otherwise it's a SQLite
    database under `BACKUP_META_HOME`.

    Returns:
        A configuration dictionary with every setting backup_meta reads.
    """
    return {
        "store": {
            "name": "memory" if is_local_mode() else "sqlite",
            "path": DEFAULT_SQLITE_PATH,
            "url": "redis://localhost:6379/0",
        },
        "system_table": {
            "name": DEFAULT_SYSTEM_TABLE_NAME,
            "session_ttl": None,
            "availability_timeout": DEFAULT_AVAILABILITY_TIMEOUT,
            "poll_interval": DEFAULT_POLL_INTERVAL,
        },
    }


def load_defaults(config: Dict):
    """
    Fill in any setting the user's configuration omits with its default value.

    Args:
        config (Dict): The configuration dictionary to be updated with default values.
    """
    fill_defaults(config, get_default_config())


def get_config(path: Optional[str] = None) -> Dict:
    """
    Loads a configuration file and returns a dictionary containing the configuration data.

    Args:
        path (str, optional): The file or directory path to search for the configuration file.
            If `None`, default search paths are used.

    Returns:
        A dictionary containing all the configuration data, with defaults applied.

    Raises:
        ValueError: If an explicit `path` was given but no configuration file exists there.
    """
    if is_local_mode():
        LOG.info("Using default configuration (local mode)")
        return get_default_config()

    filepath: Optional[str] = find_config_file(path)
    if filepath is None:
        if path is not None:
            raise ValueError(f"Cannot find a backup_meta config file at '{path}'.")
        LOG.debug("No app.yaml found; using the default configuration.")
        return get_default_config()

    config: Dict = load_config(filepath)
    load_defaults(config)
    return config


def default_config_info() -> Dict:
    """
    Returns information about backup_meta's default configurations.

    Returns:
        A dictionary containing the following keys:\n
            - `config_file` (str): Path to the configuration file in use, if any.
            - `local_mode` (bool): Whether local mode is enabled.
            - `backup_meta_home` (str): Path to the backup_meta home directory.
            - `backup_meta_home_exists` (bool): True if the home directory exists, otherwise False.
    """
    return {
        "config_file": find_config_file(),
        "local_mode": is_local_mode(),
        "backup_meta_home": BACKUP_META_HOME,
        "backup_meta_home_exists": os.path.exists(BACKUP_META_HOME),
    }


def initialize_config(path: Optional[str] = None, local_mode: bool = False) -> Config:
    """
    Initializes and returns the backup_meta configuration.

    Args:
        path (Optional[str]): Path to look for configuration file
        local_mode (bool): Whether to use local mode (no config file required)

    Returns:
        The initialized configuration object
    """
    if local_mode:
        set_local_mode(True)

    global CONFIG  # pylint: disable=global-statement

    try:
        CONFIG = Config(get_config(path))
    except (TypeError, ValueError) as e:
        LOG.warning(f"Error loading configuration: {e}. Falling back to default configuration.")
        CONFIG = Config(get_default_config())

    return CONFIG


initialize_config()
