from fastapi import Header, HTTPException, Request

from .application.services.verification_service import VerificationOrchestrator


def require_bot_token(request: Request, x_bot_token: str = Header(default="", alias="x-bot-token")):
    """
    Only the bot process may drive verification.
    - If BOT_TOKEN is empty: allow all requests (local development).
    - If BOT_TOKEN is set: require a matching x-bot-token header.
    """
    expected = request.app.state.settings.BOT_TOKEN
    if not expected:
        return
    if x_bot_token != expected:
        raise HTTPException(status_code=401, detail="Invalid bot token")


def get_orchestrator(request: Request) -> VerificationOrchestrator:
    return request.app.state.container.orchestrator
