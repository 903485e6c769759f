from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class User(BaseModel):
    id: str = Field(..., alias="_id")
    email: str
    username: str
    name: Optional[str] = None

    avatar_url: Optional[str] = None
    team: Optional[str] = None

    created_at: datetime

    is_active: bool = True
    is_admin: bool = False

    class Config:
        populate_by_name = True

    @property
    def display_name(self) -> str:
        return self.name or self.username or "Unknown"

    def is_excluded(self, excluded_names: list[str]) -> bool:
        """Cuentas de admin o de prueba: no compiten en el leaderboard."""
        if self.is_admin:
            return True
        return self.username in excluded_names or (self.name or "") in excluded_names
