from pydantic import BaseModel, field_validator
from typing import Any, Optional


class Team(BaseModel):
    createdAt: str


class CreateTeamRequest(BaseModel):
    customCode: Optional[str] = None

    @field_validator("customCode", mode="before")
    @classmethod
    def coerce_code(cls, value: Any) -> Any:
        if isinstance(value, (int, float)):
            return str(value)
        return value

class CreateTeamResponse(BaseModel):
    teamCode: str

class TeamDetailsResponse(BaseModel):
    teamCode: str
    createdAt: str
    memberCount: int
    messageCount: int
