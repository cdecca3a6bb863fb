import asyncio
import logging
import uuid

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.security import decode_access_token
from app.database import AsyncSessionLocal
from app.models.user import User
from app.services.company_service import CompanyService
from app.services.pubsub_service import CHANNELS, pubsub

logger = logging.getLogger(__name__)

router = APIRouter()


async def authorize_subscriber(token: str, company_id: uuid.UUID, db: AsyncSession) -> User | None:
    """Active user behind the token, if they belong to or manage the company."""
    try:
        subject = decode_access_token(token.removeprefix("Bearer "))
    except JWTError:
        return None
    if not subject:
        return None

    user = (await db.execute(select(User).where(User.email == subject))).scalar_one_or_none()
    if not user or not user.is_active:
        return None
    if await CompanyService.is_employee(user.id, company_id, db):
        return user
    if await CompanyService.can_manage(user, company_id, db):
        return user
    return None


@router.websocket("/ws")
async def events_websocket(websocket: WebSocket):
    """Stream one company's messages on a pub/sub channel as JSON."""
    token = websocket.query_params.get("token")
    channel = websocket.query_params.get("channel")
    raw_company_id = websocket.query_params.get("company_id")

    if not token:
        await websocket.close(code=1008, reason="Token required")
        return
    if channel not in CHANNELS:
        await websocket.close(code=1008, reason="Unknown channel")
        return
    try:
        company_id = uuid.UUID(raw_company_id or "")
    except ValueError:
        await websocket.close(code=1008, reason="company_id required")
        return

    async with AsyncSessionLocal() as db:
        user = await authorize_subscriber(token, company_id, db)
    if not user:
        await websocket.close(code=1008, reason="Not authorized")
        return

    await websocket.accept()
    logger.info("User %s subscribed to %s for company %s", user.id, channel, company_id)

    async def forward() -> None:
        async for payload in pubsub.subscribe(channel, company_id=str(company_id)):
            await websocket.send_json({"channel": channel, "data": payload})

    sender = asyncio.create_task(forward())
    try:
        while True:
            if await websocket.receive_text() == "ping":
                await websocket.send_json({"event": "pong"})
    except WebSocketDisconnect:
        logger.info("User %s disconnected from %s", user.id, channel)
    finally:
        sender.cancel()
