##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
This module contains pytest fixtures to be used throughout the entire test suite.
"""
import os
from glob import glob

import pytest

from backup_meta.config import configfile
from tests.fixture_types import FixtureModification


# pylint: disable=redefined-outer-name


#######################################
# Loading in Module Specific Fixtures #
#######################################

TESTS_DIR = os.path.dirname(os.path.abspath(__file__))
ROOT_DIR = os.path.dirname(TESTS_DIR)

fixture_glob = os.path.join(TESTS_DIR, "fixtures", "**", "*.py")
pytest_plugins = [
    os.path.relpath(fixture_file, ROOT_DIR).replace(os.sep, ".").replace(".py", "")
    for fixture_file in glob(fixture_glob, recursive=True)
    if not fixture_file.endswith("__init__.py")
]


#######################################
######### Fixture Definitions #########
#######################################


@pytest.fixture(autouse=True)
def restore_global_config() -> FixtureModification:
    """
    Restore the global configuration state after every test.

    Some tests switch backup_meta into local mode or reload `CONFIG`; this
    keeps those changes from leaking into the next test.
    """
    original_config = configfile.CONFIG
    original_local_mode = configfile.IS_LOCAL_MODE

    yield

    configfile.CONFIG = original_config
    configfile.IS_LOCAL_MODE = original_local_mode
