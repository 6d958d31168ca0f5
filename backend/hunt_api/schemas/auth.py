from __future__ import annotations
from pydantic import BaseModel, Field
from uuid import UUID
from hunt_api.config import settings

class CurrentUser(BaseModel):
    id: UUID
    roles: list[str] = Field(default_factory=list)

    @property
    def is_admin(self) -> bool:
        return settings.admin_role in self.roles
