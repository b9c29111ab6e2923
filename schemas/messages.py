from enum import Enum
from typing import Literal

from pydantic import BaseModel


class Role(str, Enum):
    """Arrival-order identity of a peer inside a room."""

    PRIMARY = "host"
    SECONDARY = "guest"

    @property
    def other(self) -> "Role":
        return Role.SECONDARY if self is Role.PRIMARY else Role.PRIMARY


# Server -> client envelopes. Client payloads are never parsed into these.

class RoleMessage(BaseModel):
    type: Literal["role"] = "role"
    role: Role

class JoinedMessage(BaseModel):
    type: Literal["joined"] = "joined"

class LeftMessage(BaseModel):
    type: Literal["left"] = "left"

class ErrorMessage(BaseModel):
    type: Literal["error"] = "error"
    msg: str
