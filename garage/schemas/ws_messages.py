from __future__ import annotations
from typing import Any
from pydantic import BaseModel


class WSMessage(BaseModel):
    event: str  # notification | message | error
    room: str = ""
    data: dict[str, Any] = {}
