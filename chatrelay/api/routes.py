from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from chatrelay.db.session import get_async_session
from chatrelay.db.schemas import MessageOut, RoomOut
from chatrelay.db import crud

router = APIRouter()

@router.get("/health")
async def health():
    return {"status": "ok"}

@router.get("/rooms/{room_id}", response_model=RoomOut)
async def get_room(room_id: str, session: AsyncSession = Depends(get_async_session)):
    room = await crud.get_room(session, room_id)
    if room is None:
        return JSONResponse(status_code=404, content={"error": "Room not found"})
    return room

@router.get("/rooms/{room_id}/messages", response_model=list[MessageOut])
async def get_room_messages(room_id: str, session: AsyncSession = Depends(get_async_session)):
    """Full history of the room, oldest first. No pagination."""
    return await crud.get_room_messages(session, room_id)
