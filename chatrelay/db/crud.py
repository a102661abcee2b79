import logging
from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError
from chatrelay.db.models import Room, Message, utcnow

logger = logging.getLogger(__name__)

RECENT_MESSAGES_LIMIT = 50
# attempts for a participant read-modify-write that lost a race
CONFLICT_RETRIES = 3

# ---------- Rooms ----------
async def get_room(session: AsyncSession, room_id: str) -> Room | None:
    res = await session.execute(select(Room).where(Room.room_id == room_id))
    return res.scalar_one_or_none()

async def add_participant(session: AsyncSession, room_id: str, username: str) -> Room:
    """Create the room with ``[username]`` or append ``username`` if it is not there yet."""
    attempt = 1
    while True:
        try:
            room = await get_room(session, room_id)
            if room is None:
                room = Room(room_id=room_id, participants=[username])
                session.add(room)
            elif username in room.participants:
                return room
            else:
                room.participants = [*room.participants, username]
            await session.commit()
            return room
        except (StaleDataError, IntegrityError):
            await session.rollback()
            if attempt == CONFLICT_RETRIES:
                raise
            attempt += 1
            logger.info("Concurrent update on room %s while adding %s, retrying", room_id, username)

async def remove_participant(session: AsyncSession, room_id: str, username: str) -> Room | None:
    """
    Drop ``username`` from the room.

    Returns the updated room, or None when there is nothing to announce: the
    room does not exist, ``username`` was not in it, or it was deleted because
    nobody is left.
    """
    attempt = 1
    while True:
        try:
            room = await get_room(session, room_id)
            if room is None:
                return None
            remaining = [p for p in room.participants if p != username]
            if not remaining:
                await session.delete(room)
                await session.commit()
                return None
            if remaining == room.participants:
                return None
            room.participants = remaining
            await session.commit()
            return room
        except StaleDataError:
            await session.rollback()
            if attempt == CONFLICT_RETRIES:
                raise
            attempt += 1
            logger.info("Concurrent update on room %s while removing %s, retrying", room_id, username)

# ---------- Messages ----------
async def create_message(session: AsyncSession, room_id: str, sender: str, text: str) -> Message:
    msg = Message(room_id=room_id, sender=sender, text=text, timestamp=utcnow())
    session.add(msg)
    await session.commit()
    await session.refresh(msg)
    return msg

async def get_recent_messages(session: AsyncSession, room_id: str, limit: int = RECENT_MESSAGES_LIMIT) -> list[Message]:
    # newest `limit` rows, handed back oldest first
    res = await session.execute(
        select(Message)
        .where(Message.room_id == room_id)
        .order_by(Message.timestamp.desc(), Message.id.desc())
        .limit(limit)
    )
    return list(reversed(res.scalars().all()))

async def get_room_messages(session: AsyncSession, room_id: str) -> list[Message]:
    res = await session.execute(
        select(Message)
        .where(Message.room_id == room_id)
        .order_by(Message.timestamp.asc(), Message.id.asc())
    )
    return list(res.scalars().all())

async def clear_room_messages(session: AsyncSession, room_id: str) -> int:
    res = await session.execute(delete(Message).where(Message.room_id == room_id))
    await session.commit()
    return res.rowcount
