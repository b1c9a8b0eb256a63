##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Genpersist
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Genpersist.
##############################################################################

"""
Genpersist: generic relational persistence for Python dataclasses.

This module contains the source code for Genpersist.
"""

import logging


__version__ = "0.4.0"
VERSION = __version__

# The library stays silent unless the application configures logging
logging.getLogger(__name__).addHandler(logging.NullHandler())
