"""
Voice transcript endpoint
"""
from fastapi import APIRouter

from app.database.schemas import ExtractedFields, TranscriptRequest
from app.services.voice import parse_transcript

router = APIRouter()


@router.post("/voice/parse", response_model=ExtractedFields)
async def parse_voice_transcript(payload: TranscriptRequest):
    """
    Extract intake form fields from a final transcript

    Fields that could not be found are returned as null.
    """
    return parse_transcript(payload.transcript)
