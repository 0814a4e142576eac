"""Data Transfer Objects for service layer"""
from typing import List, Optional
from pydantic import BaseModel, Field

from analysis.schemas import SnapshotView


class SnapshotHistoryDTO(BaseModel):
    """Service layer DTO for snapshot history, newest first"""
    channel_id: str
    snapshots: List[SnapshotView] = Field(default_factory=list)


class HealthResponseDTO(BaseModel):
    """Service layer DTO for health check responses"""
    ok: bool = True
    timestamp: Optional[str] = None
    version: Optional[str] = None
    database: Optional[bool] = None
