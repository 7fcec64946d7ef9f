# Schemas package (re-export feature modules for stable imports)
from .verification import (
    ContactRequest,
    SubmitCodeRequest,
    SubmitPhoneRequest,
    UserResponse,
    VerificationStatusResponse,
)

__all__ = [
    "ContactRequest",
    "SubmitCodeRequest",
    "SubmitPhoneRequest",
    "UserResponse",
    "VerificationStatusResponse",
]
