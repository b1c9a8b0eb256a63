##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Genpersist
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Genpersist.
##############################################################################

"""
The `mapping` package turns entity classes into metadata and entity values into rows.

Modules:
    type_info: Immutable `TypeInfo`, `FieldDescriptor` and `TypeTag` metadata.
    codec: Conversion of single field values to and from database values, plus the
        process-wide converter registry.
    reflection: Reflection of dataclasses into `TypeInfo`, with per-type registration
        and caching.
    entity: The `Entity` base class and the default row conversion.
"""
