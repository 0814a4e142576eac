"""Column types portable between PostgreSQL and SQLite"""
from sqlalchemy import BIGINT, Integer, JSON
from sqlalchemy.dialects.postgresql import JSONB

# SQLite only autoincrements INTEGER PRIMARY KEY
BigIntPK = BIGINT().with_variant(Integer(), "sqlite")

JsonDocument = JSON().with_variant(JSONB(), "postgresql")
