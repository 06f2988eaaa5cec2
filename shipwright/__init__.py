"""Release tooling: Cython-compiled wheels and Alembic autogeneration."""

__version__ = "0.3.0"
