"""
SQLAlchemy Base Definition Module.

Declarative base shared by the table declarations in `cloude.db.models`.
The API itself reads and writes through the Supabase SDK; these declarations
document the schema and let `init_db` create it.
"""

from sqlalchemy.orm import declarative_base, registry

# Create a new SQLAlchemy mapper registry
mapper_registry = registry()

# Create the base class for declarative class definitions
Base = declarative_base(metadata=mapper_registry.metadata)
