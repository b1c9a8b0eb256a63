##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Genpersist
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Genpersist.
##############################################################################

"""
This module contains pytest fixtures to be used throughout the entire test suite.

Fixtures are kept in `tests/fixtures/` and are loaded here as plugins so that
every test module can use them without importing them.
"""
import os
from glob import glob

import pytest

from genpersist.mapping import reflection


#######################################
# Loading in Module Specific Fixtures #
#######################################


fixture_glob = os.path.join("tests", "fixtures", "**", "*.py")
pytest_plugins = [
    fixture_file.replace(os.sep, ".").replace(".py", "")
    for fixture_file in glob(fixture_glob, recursive=True)
    if not fixture_file.endswith("__init__.py")
]


#######################################
######### Fixture Definitions #########
#######################################


@pytest.fixture(autouse=True)
def fresh_reflection_cache():
    """
    Clear the reflection cache around every test so that registrations made
    by one test never leak cached metadata into another.
    """
    reflection.clear_cache()
    yield
    reflection.clear_cache()
