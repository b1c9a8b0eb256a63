##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Genpersist
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Genpersist.
##############################################################################

"""
This module stores constants representing file paths that will be needed for
Genpersist's configuration.
"""

import os


APP_FILENAME: str = "genpersist.yaml"
USER_HOME: str = os.path.expanduser("~")
GENPERSIST_HOME: str = os.path.join(USER_HOME, ".genpersist")
