from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from core.assistant import AssistantReply, Elite65Assistant

router = APIRouter()


class ChatRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    message: str


class TranscriptResponse(BaseModel):
    conversation_id: str
    topic: str
    messages: List[Dict[str, Any]]


def get_assistant(request: Request) -> Elite65Assistant:
    return request.app.state.assistant


@router.post("/{conversation_id}/messages", response_model=AssistantReply)
def send_message(conversation_id: str, body: ChatRequest, request: Request):
    """Run one chat turn and return the bot's reply."""
    assistant = get_assistant(request)
    return assistant.handle(body.user_id, conversation_id, body.message)


@router.get("/{conversation_id}/messages", response_model=TranscriptResponse)
def get_transcript(conversation_id: str, request: Request):
    session = get_assistant(request).sessions.get(conversation_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Conversation {conversation_id} not found")
    return session.to_dict()


@router.delete("/{conversation_id}")
def reset_conversation(conversation_id: str, request: Request):
    removed = get_assistant(request).sessions.reset(conversation_id)
    return {"conversation_id": conversation_id, "reset": removed}
