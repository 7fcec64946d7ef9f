# phoneverify/schemas/verification.py
from typing import Optional

from pydantic import BaseModel, Field

from ..application.services.verification_service import VerificationOutcome
from ..messages import message_for


class ContactRequest(BaseModel):
    username: Optional[str] = Field(None, max_length=64)
    first_name: Optional[str] = Field(None, max_length=100)


class SubmitPhoneRequest(BaseModel):
    phone: str = Field(..., min_length=1, max_length=32, description="Phone number, international format preferred")


class SubmitCodeRequest(BaseModel):
    code: str = Field(..., pattern=r"^\s*\d{4,8}\s*$", description="One-time code received by SMS")


class VerificationStatusResponse(BaseModel):
    user_id: str
    state: str
    error: Optional[str] = None
    phone: Optional[str] = None
    attempts: int = 0
    already_verified: bool = False
    message: str

    @classmethod
    def from_outcome(cls, outcome: VerificationOutcome) -> "VerificationStatusResponse":
        return cls(
            user_id=outcome.user_id,
            state=outcome.state.value,
            error=outcome.error.value if outcome.error else None,
            phone=outcome.phone,
            attempts=outcome.attempts,
            already_verified=outcome.already_verified,
            message=message_for(outcome),
        )


class UserResponse(BaseModel):
    id: str
    phone: Optional[str] = None
    verified: bool
    profile: dict
