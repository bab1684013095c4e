##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
Store factory for selecting and instantiating sorted key-value stores.

This module defines the `StoreFactory` class, which maps store names from the
configuration (e.g. "sqlite" or "redis") onto store implementations. Third-party
stores can be added by publishing a class under the `backup_meta.stores` entry point group.
"""

import logging
from types import SimpleNamespace
from typing import Any, Dict, Type

from backup_meta.abstracts import BaseFactory
from backup_meta.config import Config
from backup_meta.exceptions import StoreNotSupportedError
from backup_meta.store.memory.memory_store import MemoryStore
from backup_meta.store.redis.redis_store import RedisStore
from backup_meta.store.sqlite.sqlite_store import SQLiteStore
from backup_meta.store.store_base import SortedStore


LOG = logging.getLogger(__name__)


class StoreFactory(BaseFactory):
    """
    Factory class for managing and instantiating supported sorted stores.

    Attributes:
        _registry (Dict[str, SortedStore]): Maps canonical store names to store classes.
        _aliases (Dict[str, str]): Maps alternate names to canonical store names.

    Methods:
        register: Register a new store class and optional aliases.
        list_available: Return a list of supported store names.
        create: Instantiate a store class by name or alias.
    """

    def _register_builtins(self):
        """
        Register built-in store implementations.
        """
        self.register("memory", MemoryStore)
        self.register("redis", RedisStore, aliases=["rediss"])
        self.register("sqlite", SQLiteStore)

    def _validate_component(self, component_class: Any):
        """
        Ensure registered component is a subclass of SortedStore.

        Args:
            component_class: The class to validate.

        Raises:
            TypeError: If the component does not subclass SortedStore.
        """
        if not isinstance(component_class, type) or not issubclass(component_class, SortedStore):
            raise TypeError(f"{component_class} must inherit from SortedStore")

    def _entry_point_group(self) -> str:
        """
        Entry point group used for discovering store plugins.

        Returns:
            The entry point namespace for backup_meta store plugins.
        """
        return "backup_meta.stores"

    def _raise_component_error_class(self, msg: str) -> Type[Exception]:
        """
        Raise an appropriate exception for unsupported stores.

        Args:
            msg: The message to add to the error being raised.

        Raises:
            StoreNotSupportedError: Always.
        """
        raise StoreNotSupportedError(msg)


store_factory = StoreFactory()


def open_store(config: Config = None) -> SortedStore:
    """
    Open the sorted store described by the `store` section of a configuration.

    Args:
        config: The configuration to read. Defaults to the global `CONFIG`.

    Returns:
        An open store. The caller owns it and is responsible for closing it.

    Raises:
        StoreNotSupportedError: If the configured store name isn't registered.
    """
    if config is None:
        from backup_meta.config.configfile import CONFIG  # pylint: disable=import-outside-toplevel

        config = CONFIG

    store_settings: Dict = dict(vars(config.store)) if isinstance(config.store, SimpleNamespace) else {}
    name = store_settings.pop("name", "sqlite")
    if name in ("redis", "rediss"):
        store_settings["store_name"] = name
    LOG.debug(f"Opening '{name}' store.")
    return store_factory.create(name, store_settings)
