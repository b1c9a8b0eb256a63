##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Genpersist
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Genpersist.
##############################################################################

"""
The `sql` package generates parameterized SQL text from reflected entity metadata.

Modules:
    dialects: Per-backend column types, placeholders, autoincrement and LIMIT syntax.
    statements: INSERT/UPDATE/SELECT/DELETE/CREATE/DROP statement generation.
    where: The composable where clause expression DSL.
    where_compiler: Compilation of where clause expressions into SQL fragments and parameters.
"""
