"""Product catalog REST service.

FastAPI application exposing CRUD endpoints over the ``Products`` table,
backed by SQLModel/SQLAlchemy with explicit schema initialization and seeding.
"""

__version__ = "0.1.0"
