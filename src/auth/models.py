from typing import List

from pydantic import BaseModel, ConfigDict, Field

class CurrentUser(BaseModel):
    """Identité de l'appelant telle que fournie par le collaborateur d'authentification."""
    user_id: int
    role: str = "USER"
    location_ids: List[int] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)
