from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional

class ItemSummary(BaseModel):
    id: int
    name: str

class Item(BaseModel):
    id: int
    name: str
    created_at: Optional[datetime] = None

class Regions(BaseModel):
    # unset regions serialize as null, the keys are always present
    fly: Optional[str] = None
    primary: Optional[str] = None

class ReadResponse(BaseModel):
    duration: float
    data: List[ItemSummary]
    regions: Regions

class WriteResponse(BaseModel):
    duration: float
    data: Item
    regions: Regions
