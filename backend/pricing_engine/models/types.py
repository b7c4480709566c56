"""Shared column types."""

from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import JSON

JSONB_TYPE = JSONB().with_variant(JSON(), "sqlite")
