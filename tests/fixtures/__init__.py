##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
This directory is for help modularizing fixture definitions so that we don't have to
store every single fixture in the `conftest.py` file.

Fixtures should start with the same name as the file they're defined in. For instance,
fixtures that build backup system tables live in `system_table.py` and are named
`system_table_*`:

```title="system_table.py"
import pytest

@pytest.fixture
def system_table_name():
    return "test:backup"
```
"""
