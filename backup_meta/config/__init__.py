##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
Used to store the application configuration.

The `config` package provides functionality for loading the `app.yaml` file that tells
backup_meta which sorted store to connect to and how to provision the backup system table.

Modules:
    config_filepaths.py: Constants for the locations of configuration files.
    configfile.py: Handles the loading of the configuration file and its defaults.
"""
from copy import copy
from types import SimpleNamespace
from typing import Dict, List, Optional

from backup_meta.utils import nested_dict_to_namespaces


class Config:  # pylint: disable=R0903
    """
    The Config class, meant to store all backup_meta config settings in one place.

    Attributes:
        store (Optional[SimpleNamespace]): A namespace containing the sorted store settings.
        system_table (Optional[SimpleNamespace]): A namespace containing the backup system
            table settings (name, session TTL, availability wait).

    Methods:
        __copy__: Creates a shallow copy of the Config instance.
        __str__: Returns a formatted string representation of the Config instance.
        load_app_into_namespaces: Converts the provided configuration dictionary into namespaces
            and assigns them to the Config instance's attributes.
    """

    FIELDS: List[str] = ["store", "system_table"]

    def __init__(self, app_dict: Dict):
        """
        Initializes the Config instance with configuration data from a dictionary.

        Args:
            app_dict: A dictionary containing configuration data for the application.
                The keys "store" and "system_table" are each converted into a `SimpleNamespace`
                and assigned to the corresponding attribute of the Config instance.
        """
        self.store: Optional[SimpleNamespace] = None
        self.system_table: Optional[SimpleNamespace] = None
        self.load_app_into_namespaces(app_dict)

    def __copy__(self) -> "Config":
        """
        Creates a shallow copy of the Config instance.

        Returns:
            A new Config instance with copied `store` and `system_table` attributes.
        """
        cls = self.__class__
        result = cls.__new__(cls)
        result.__dict__.update({name: copy(self.__dict__[name]) for name in self.FIELDS})
        return result

    def __str__(self) -> str:
        """
        Returns a formatted string representation of the Config instance.

        Returns:
            A string containing the values of the `store` and `system_table` attributes.
        """
        formatted_str = "config:"
        for name in self.FIELDS:
            attr = getattr(self, name)
            if attr is not None:
                items = (f"    {k}: {v!r}" for k, v in attr.__dict__.items())
                joined_items = "\n".join(items)
                formatted_str += f"\n  {name}:\n{joined_items}"
            else:
                formatted_str += f"\n  {name}:\n    None"
        return formatted_str

    def load_app_into_namespaces(self, app_dict: Dict):
        """
        Converts the provided application dictionary into namespaces and assigns them
        to the Config instance's attributes.

        Args:
            app_dict: A dictionary containing configuration data for the application.
        """
        for field in self.FIELDS:
            # Sections are optional, and a blank section counts as missing
            section = app_dict.get(field)
            if section is not None:
                setattr(self, field, nested_dict_to_namespaces(section))
