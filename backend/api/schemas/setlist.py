from pydantic import BaseModel, Field

class SetlistItemCreate(BaseModel):
    song_id: str
    order_index: int = Field(ge=1)

class OrderUpdate(BaseModel):
    order_index: int = Field(ge=1)
