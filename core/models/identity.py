from sqlalchemy import Column, String, Text, BIGINT, TIMESTAMP, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from core.db import Base
from core.models.column_types import BigIntPK

class Identity(Base):
    """A user's linked credential for one provider"""
    __tablename__ = "identities"

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    user_id = Column(BIGINT, ForeignKey("users.id"), nullable=False, comment="Owning user")
    provider = Column(String(32), nullable=False, comment="Provider name (twitter, google, ...)")
    provider_id = Column(String, nullable=False, comment="Provider-native actor id")
    access_token = Column(Text, comment="User-context access token")
    access_token_secret = Column(Text, comment="Token secret (OAuth 1.0a providers)")
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=func.now())

    user = relationship("User", back_populates="identities")

    __table_args__ = (
        UniqueConstraint("provider", "provider_id", name="uq_identities_provider_native"),
    )
