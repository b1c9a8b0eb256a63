##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Genpersist
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Genpersist.
##############################################################################

"""
The `common` package provides shared definitions used across Genpersist.

Modules:
    enums.py: Defines enumerations for database kinds, commit modes, sort orders and type kinds.
"""
