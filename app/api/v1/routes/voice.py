# app/api/v1/routes/voice.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.api.v1.routes.expenses import record_expense
from app.core.auth import User
from app.core.database import get_async_session
from app.schemas.expense import ExpenseCreate, ExpenseRead
from app.schemas.voice import (
    TranscriptRequest, ParsedExpense, ParsedIncome, VoiceCommandResult, VoiceCommandInfo,
)
from app.utils.voice import (
    VOICE_COMMANDS, parse_expense_transcript, parse_income_transcript, match_voice_command,
)

router = APIRouter(prefix="/voice", tags=["voice"])


@router.post("/parse-expense", response_model=ParsedExpense)
async def parse_expense(body: TranscriptRequest, user: User = Depends(get_current_user)):
    return parse_expense_transcript(body.transcript)


@router.post("/expense", response_model=ExpenseRead, status_code=status.HTTP_201_CREATED)
async def create_expense_from_voice(
    body: TranscriptRequest,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    """Parse a transcript and record it as an expense in one step."""
    draft = parse_expense_transcript(body.transcript)
    if draft["missing_fields"]:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "message": "Could not understand the expense. Please fill in the missing fields.",
                "missing_fields": draft["missing_fields"],
                "draft": ParsedExpense(**draft).model_dump(mode="json"),
            },
        )

    expense_in = ExpenseCreate(
        description=draft["description"][:255],
        amount=draft["amount"],
        date=draft["date"],
        category=draft["category"],
        payment_method=draft["payment_method"],
        notes=f"Voice entry: {body.transcript}"[:500],
    )
    return await record_expense(user, expense_in, db)


@router.post("/parse-income", response_model=ParsedIncome)
async def parse_income(body: TranscriptRequest, user: User = Depends(get_current_user)):
    return parse_income_transcript(body.transcript)


@router.post("/command", response_model=VoiceCommandResult)
async def voice_command(body: TranscriptRequest, user: User = Depends(get_current_user)):
    return match_voice_command(body.transcript)


@router.get("/commands", response_model=List[VoiceCommandInfo])
async def list_voice_commands():
    return VOICE_COMMANDS
