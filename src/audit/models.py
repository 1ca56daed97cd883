from typing import Any, Dict, Optional
from datetime import datetime, timezone

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field

class AuditLog(SQLModel, table=True):
    """Trace d'une mutation réussie (création, mise à jour, suppression, conversion)."""
    id: Optional[int] = Field(default=None, primary_key=True)
    entity_type: str = Field(max_length=50, index=True)
    entity_id: str = Field(max_length=64, index=True)
    action: str = Field(max_length=50)
    user_id: Optional[str] = Field(default=None, max_length=64)
    changes: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    ip_address: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=255)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), nullable=False)

    __tablename__ = "audit_logs"
