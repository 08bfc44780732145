import logging

from fastapi import APIRouter, Depends, HTTPException, Response

from formflow.api.schemas import (
    ChatMessageSchema,
    ConfigResponseSchema,
    ConversationDetailSchema,
    ConversationSummarySchema,
    MessageRequestSchema,
    MessageResponseSchema,
)
from formflow.application.exceptions import LLMContractError, LLMUpstreamError, NotFoundError
from formflow.application.use_cases.conversation_admin import ConversationAdminUseCase
from formflow.application.use_cases.handle_message import HandleMessageUseCase
from formflow.application.use_cases.state_machine import ConversationStateMachine
from formflow.domain.entities.conversation import Conversation
from formflow.wiring.dependencies import (
    get_conversation_admin_use_case,
    get_handle_message_use_case,
)

router = APIRouter(prefix="/conversation")
logger = logging.getLogger(__name__)


def _to_http_error(e: Exception) -> HTTPException:
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ValueError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, (LLMUpstreamError, LLMContractError)):
        return HTTPException(status_code=502, detail=str(e))
    logger.exception("Unhandled error while processing conversation request")
    return HTTPException(status_code=500, detail="Internal server error")


def _summary(conversation: Conversation) -> dict:
    return {
        "id": conversation.id,
        "status": conversation.status.value,
        "blueprint_id": conversation.blueprint_id,
        "current_field_id": conversation.current_field_id,
        "state": ConversationStateMachine.get_current_state(conversation).value,
        "created_at": conversation.created_at,
        "updated_at": conversation.updated_at,
    }


@router.post("", response_model=MessageResponseSchema)
async def post_message(
    req: MessageRequestSchema,
    uc: HandleMessageUseCase = Depends(get_handle_message_use_case),
):
    try:
        reply = await uc.execute(conversation_id=req.conversation_id, text=req.text)
    except Exception as e:
        raise _to_http_error(e) from e

    return MessageResponseSchema(
        conversation_id=reply.conversation_id,
        text=reply.text,
        is_complete=reply.is_complete,
        data=reply.data,
    )


@router.get("/config", response_model=ConfigResponseSchema)
async def get_config(uc: ConversationAdminUseCase = Depends(get_conversation_admin_use_case)):
    try:
        config = await uc.get_config()
    except Exception as e:
        raise _to_http_error(e) from e
    return ConfigResponseSchema(welcome_message=config["welcomeMessage"])


@router.get("", response_model=list[ConversationSummarySchema])
async def list_conversations(uc: ConversationAdminUseCase = Depends(get_conversation_admin_use_case)):
    conversations = await uc.list_conversations()
    return [ConversationSummarySchema(**_summary(c)) for c in conversations]


@router.get("/{conversation_id}", response_model=ConversationDetailSchema)
async def get_conversation(
    conversation_id: str,
    uc: ConversationAdminUseCase = Depends(get_conversation_admin_use_case),
):
    try:
        conversation = await uc.get_conversation(conversation_id)
    except Exception as e:
        raise _to_http_error(e) from e

    return ConversationDetailSchema(
        **_summary(conversation),
        current_language=conversation.current_language,
        data=conversation.data,
        messages=[
            ChatMessageSchema(role=m.role, content=m.content, timestamp=m.timestamp)
            for m in conversation.messages
        ],
    )


@router.delete("/{conversation_id}", status_code=204)
async def delete_conversation(
    conversation_id: str,
    uc: ConversationAdminUseCase = Depends(get_conversation_admin_use_case),
):
    try:
        await uc.delete_conversation(conversation_id)
    except Exception as e:
        raise _to_http_error(e) from e
    return Response(status_code=204)
