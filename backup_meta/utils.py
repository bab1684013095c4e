##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
Module for project-wide utility functions.
"""
import logging
from copy import deepcopy
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import yaml


LOG = logging.getLogger(__name__)


def load_yaml(filepath: str) -> Dict:
    """
    Safely read a YAML file and return its contents.

    Args:
        filepath: The file path to the YAML file to be read.

    Returns:
        A dict representing the contents of the YAML file.
    """
    with open(filepath, "r") as _file:
        return yaml.safe_load(_file)


def get_yaml_var(entry: Dict[str, Any], var: str, default: Any) -> Any:
    """
    Retrieve the value associated with a specified key from a YAML dictionary.

    If the key does not exist, it will try to access it as an attribute of the
    entry object. If neither is found, the function returns `default`.

    Args:
        entry: A dictionary (or namespace) representing the contents of a YAML file.
        var: The key or attribute name to retrieve.
        default: The value to return if `var` is not found.

    Returns:
        The value associated with `var`, or `default`.
    """
    try:
        return entry[var]
    except (TypeError, KeyError):
        try:
            return getattr(entry, var)
        except AttributeError:
            return default


def nested_dict_to_namespaces(dic: Dict) -> SimpleNamespace:
    """
    Convert a nested dictionary into a nested SimpleNamespace structure.

    Args:
        dic: The nested dictionary to be converted.

    Returns:
        A SimpleNamespace object representing the nested structure of the input dictionary.

    Raises:
        TypeError: If the input is not a dictionary.
    """

    def recurse(dic):
        if not isinstance(dic, dict):
            return dic
        for key, val in list(dic.items()):
            dic[key] = recurse(val)
        return SimpleNamespace(**dic)

    if not isinstance(dic, dict):
        raise TypeError(f"{dic} is not a dict")

    new_dic = deepcopy(dic)
    return recurse(new_dic)


def fill_defaults(settings: Dict, defaults: Dict, path: Optional[List[str]] = None):
    """
    Recursively copy every key of `defaults` that `settings` lacks into `settings`.

    Values already present in `settings` always win, except blank (None) values,
    which count as missing.

    Args:
        settings: The user's settings, updated in place.
        defaults: The default settings.
        path: The keys leading to `settings`, used for logging during recursion.

    Raises:
        TypeError: If `settings` or `defaults` is not a dict.
    """
    for name, value in (("settings", settings), ("defaults", defaults)):
        if not isinstance(value, dict):
            raise TypeError(f"Cannot fill defaults: {name} '{value}' is not a dict.")

    path = path or []
    for key, default in defaults.items():
        key_path = path + [str(key)]
        if settings.get(key) is None:
            LOG.debug(f"Using the default value for '{'.'.join(key_path)}'.")
            settings[key] = deepcopy(default)
        elif isinstance(settings[key], dict) and isinstance(default, dict):
            fill_defaults(settings[key], default, path=key_path)
