##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Genpersist
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Genpersist.
##############################################################################

"""
The `persistence` package runs insert, update, select and delete operations for entities.

Modules:
    result: The `Result` success-or-error type.
    orchestrator: `PersistenceOrchestrator`, returning a `Result` from every operation.
    facade: `GenericPersistence`, the same operations raising on failure.
"""

from genpersist.persistence.facade import GenericPersistence
from genpersist.persistence.orchestrator import PersistenceOrchestrator
from genpersist.persistence.result import Result


__all__ = ["GenericPersistence", "PersistenceOrchestrator", "Result"]
