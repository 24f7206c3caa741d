from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union

AttributeValue = Union[str, List[str]]


class FailureReason(str, Enum):
    REMOTE_REJECTED = "remote_rejected"       # CAS said no
    MALFORMED_RESPONSE = "malformed_response"
    TRANSPORT_ERROR = "transport_error"


@dataclass(frozen=True)
class Success:
    principal: str
    attributes: Dict[str, AttributeValue] = field(default_factory=dict)


@dataclass(frozen=True)
class Failure:
    reason: FailureReason
    code: Optional[str] = None
    detail: str = ""

    def __str__(self):
        text = self.reason.value
        if self.code:
            text += f" ({self.code})"
        if self.detail:
            text += f": {self.detail}"
        return text


Outcome = Union[Success, Failure]


class AuthType(str, Enum):
    BOUNCE = "bounce"
    BOUNCE_REDIRECT = "bounce_redirect"
    BLOCK = "block"


class ActionKind(str, Enum):
    ALLOW = "allow"
    REDIRECT = "redirect"
    REJECT = "reject"


@dataclass(frozen=True)
class Action:
    """What the host must do with the current request."""
    kind: ActionKind
    location: Optional[str] = None
    status_code: int = 200

    @classmethod
    def allow(cls) -> "Action":
        return cls(ActionKind.ALLOW)

    @classmethod
    def redirect(cls, location: str) -> "Action":
        return cls(ActionKind.REDIRECT, location=location, status_code=302)

    @classmethod
    def reject(cls, status_code: int = 401) -> "Action":
        return cls(ActionKind.REJECT, status_code=status_code)
