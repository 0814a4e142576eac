from sqlalchemy import Column, Text, TIMESTAMP
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from core.db import Base
from core.models.column_types import BigIntPK

class User(Base):
    """Application user; owned by the login flow"""
    __tablename__ = "users"

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    display_name = Column(Text, comment="Display name from the first linked provider")
    avatar_url = Column(Text, comment="Avatar URL")
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=func.now())

    identities = relationship("Identity", back_populates="user")
