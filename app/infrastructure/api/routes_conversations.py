"""Conversation thread endpoint."""

from fastapi import APIRouter, Depends

from app.application.use_cases.ticket_service import TicketService
from app.domain.entities.user import User
from app.infrastructure.api.dependencies import get_current_user, get_ticket_service
from app.infrastructure.api.schemas import ConversationOut

router = APIRouter(prefix="/conversations", tags=["conversations"])


@router.get("/{conversation_id}", response_model=ConversationOut)
async def get_conversation(
    conversation_id: int,
    caller: User = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service),
):
    """Conversation with its messages in posting order."""
    conversation = await service.get_conversation(conversation_id, caller)
    return ConversationOut.from_domain(conversation)
