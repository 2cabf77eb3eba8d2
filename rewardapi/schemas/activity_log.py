from pydantic import BaseModel, ConfigDict
from typing import Any, Dict, Optional


class ActivityLogEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    action_type: str
    action_title: str
    action_description: Optional[str] = None
    related_id: Optional[str] = None
    related_type: Optional[str] = None
    extra: Optional[Dict[str, Any]] = None
