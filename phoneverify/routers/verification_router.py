# phoneverify/routers/verification_router.py
import logging

from fastapi import APIRouter, Depends

from ..application.services.verification_service import VerificationOrchestrator
from ..dependencies import get_orchestrator, require_bot_token
from ..exceptions import create_error_response, create_success_response
from ..schemas.verification import (
    ContactRequest,
    SubmitCodeRequest,
    SubmitPhoneRequest,
    UserResponse,
    VerificationStatusResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/verification", tags=["Verification"], dependencies=[Depends(require_bot_token)])


def _respond(outcome) -> dict:
    body = VerificationStatusResponse.from_outcome(outcome).model_dump()
    if outcome.success:
        return create_success_response(body)
    return create_error_response(body["error"], data=body)


@router.post("/{user_id}/contact")
async def register_contact(user_id: str, payload: ContactRequest, orchestrator: VerificationOrchestrator = Depends(get_orchestrator)):
    record = await orchestrator.register_contact(user_id, username=payload.username, first_name=payload.first_name)
    user = UserResponse(id=record.id, phone=record.phone, verified=record.verified, profile=record.profile)
    return create_success_response(user.model_dump())


@router.post("/{user_id}/phone")
async def submit_phone(user_id: str, payload: SubmitPhoneRequest, orchestrator: VerificationOrchestrator = Depends(get_orchestrator)):
    outcome = await orchestrator.submit_phone(user_id, payload.phone)
    return _respond(outcome)


@router.post("/{user_id}/code")
async def submit_code(user_id: str, payload: SubmitCodeRequest, orchestrator: VerificationOrchestrator = Depends(get_orchestrator)):
    outcome = await orchestrator.submit_code(user_id, payload.code)
    return _respond(outcome)


@router.get("/{user_id}")
async def get_status(user_id: str, orchestrator: VerificationOrchestrator = Depends(get_orchestrator)):
    outcome = await orchestrator.get_state(user_id)
    return _respond(outcome)
