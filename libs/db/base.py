"""Declarative base shared by every service's models.

Each service package imports ``Base`` from here so that a single
``Base.metadata`` sees every table (tests call ``create_all`` on it).
"""

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase

# JSONB on Postgres, plain JSON elsewhere (sqlite in tests).
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    pass
