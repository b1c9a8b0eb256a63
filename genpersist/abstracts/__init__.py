##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Genpersist
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Genpersist.
##############################################################################

"""
The `abstracts` package provides ABC classes that can be used throughout
Genpersist's codebase.

Modules:
    factory: Contains `BaseFactory`, used to manage pluggable components.
"""

from genpersist.abstracts.factory import BaseFactory


__all__ = ["BaseFactory"]
