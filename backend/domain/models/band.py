from typing import Optional
from datetime import datetime
from sqlmodel import Field, SQLModel

from domain.models.ids import new_id

class Band(SQLModel, table=True):
    __tablename__ = "bands"
    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: Optional[str] = None
    name: str
    description: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
