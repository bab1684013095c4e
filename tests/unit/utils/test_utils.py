##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
Tests for the `utils.py` module.
"""

import logging
import os
from types import SimpleNamespace

import pytest
import yaml

from backup_meta.utils import fill_defaults, get_yaml_var, load_yaml, nested_dict_to_namespaces


def test_load_yaml(tmp_path):
    """
    Test that a YAML file is read into a dictionary.

    Args:
        tmp_path: PyTest temporary directory fixture.
    """
    path = os.path.join(str(tmp_path), "app.yaml")
    with open(path, "w") as yaml_file:
        yaml.dump({"store": {"name": "redis", "url": "redis://localhost"}}, yaml_file)
    assert load_yaml(path) == {"store": {"name": "redis", "url": "redis://localhost"}}


@pytest.mark.parametrize(
    "entry, expected",
    [
        ({"name": "x"}, "x"),
        (SimpleNamespace(name="x"), "x"),
        ({}, "default"),
        (SimpleNamespace(), "default"),
        (None, "default"),
    ],
)
def test_get_yaml_var(entry, expected: str):
    """
    Test that values are read from dictionaries or namespaces, falling back to the default.

    Args:
        entry: The dictionary or namespace to read.
        expected: The expected value.
    """
    assert get_yaml_var(entry, "name", "default") == expected


class TestNestedDictToNamespaces:
    """Tests for `nested_dict_to_namespaces`."""

    def test_nested(self):
        """Test that nested dictionaries become nested namespaces without touching the input."""
        original = {"store": {"name": "sqlite", "options": {"timeout": 5}}}
        namespace = nested_dict_to_namespaces(original)
        assert namespace.store.name == "sqlite"
        assert namespace.store.options.timeout == 5
        assert isinstance(original["store"], dict)

    def test_rejects_non_dicts(self):
        """Test that anything other than a dictionary raises a `TypeError`."""
        with pytest.raises(TypeError):
            nested_dict_to_namespaces(["not", "a", "dict"])


class TestFillDefaults:
    """Tests for `fill_defaults`."""

    def test_adds_missing_keys_recursively(self):
        """Test that keys missing from the settings are added at every level."""
        settings = {"store": {"name": "redis"}}
        defaults = {"store": {"name": "sqlite", "url": "redis://localhost"}, "system_table": {"name": "b:s"}}
        fill_defaults(settings, defaults)
        assert settings == {"store": {"name": "redis", "url": "redis://localhost"}, "system_table": {"name": "b:s"}}

    def test_defaults_are_copied(self):
        """Test that filled-in sections are independent of the defaults they came from."""
        defaults = {"system_table": {"name": "b:s"}}
        settings = {}
        fill_defaults(settings, defaults)
        settings["system_table"]["name"] = "changed"
        assert defaults["system_table"]["name"] == "b:s"

    def test_user_value_of_another_type_wins(self):
        """Test that a user value replacing a whole default section is left alone."""
        settings = {"system_table": "b:s"}
        fill_defaults(settings, {"system_table": {"name": "b:s"}})
        assert settings == {"system_table": "b:s"}

    def test_blank_values_count_as_missing(self):
        """Test that blank (None) values are replaced by their defaults."""
        settings = {"store": None, "system_table": {"poll_interval": None}}
        fill_defaults(settings, {"store": {"name": "sqlite"}, "system_table": {"poll_interval": 0.1}})
        assert settings == {"store": {"name": "sqlite"}, "system_table": {"poll_interval": 0.1}}

    def test_logs_defaulted_keys(self, caplog: pytest.LogCaptureFixture):
        """
        Test that every defaulted key is logged with its full path.

        Args:
            caplog: PyTest log capture fixture.
        """
        with caplog.at_level(logging.DEBUG, logger="backup_meta.utils"):
            fill_defaults({"store": {}}, {"store": {"path": "/tmp/db"}})
        assert "Using the default value for 'store.path'." in caplog.text

    @pytest.mark.parametrize("settings, defaults", [(None, {}), ({}, ["no lists"]), ("nope", 10)])
    def test_invalid_inputs(self, settings, defaults):
        """
        Test that non-dictionary inputs raise a `TypeError`.

        Args:
            settings: The value to fill.
            defaults: The defaults to fill it with.
        """
        with pytest.raises(TypeError, match="is not a dict"):
            fill_defaults(settings, defaults)
