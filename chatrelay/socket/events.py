import logging
import socketio
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from chatrelay.db.session import AsyncSessionLocal
from chatrelay.db import crud
from chatrelay.db.schemas import (
    ClearRoomChatIn,
    ErrorOut,
    JoinRoomIn,
    MessageOut,
    ParticipantsOut,
    RoomJoinedOut,
    SendMessageIn,
    TypingIn,
    UserTypingOut,
)

logger = logging.getLogger(__name__)

INVALID_PAYLOAD = "Invalid payload"
# drivers such as asyncpg let connection failures through unwrapped
STORE_ERRORS = (SQLAlchemyError, OSError)


def register_socket_events(
    sio: socketio.AsyncServer,
    session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal,
):
    """
    Bind the chat handlers to ``sio``.

    Each connection keeps its own ``room_id``/``username`` in its Socket.IO
    session; who is in a room is whatever the persisted Room row says.
    """

    async def emit_error(sid, message: str):
        await sio.emit("error", ErrorOut(message=message).model_dump(), to=sid)

    async def leave_room(sid, room_id: str, username: str):
        async with session_factory() as session:
            room = await crud.remove_participant(session, room_id, username)
        await sio.leave_room(sid, room_id)
        if room is not None:
            await sio.emit(
                "user-left",
                ParticipantsOut(username=username, participants=room.participants).to_wire(),
                room=room_id,
                skip_sid=sid,
            )
        logger.info("%s left room %s", username, room_id)

    @sio.event
    async def connect(sid, environ):
        logger.info("User connected: %s", sid)

    @sio.on("join-room")
    async def join_room(sid, data):
        try:
            payload = JoinRoomIn.model_validate(data)
        except ValidationError:
            await emit_error(sid, INVALID_PAYLOAD)
            return

        sess = await sio.get_session(sid)
        try:
            # a connection sits in one room at a time
            bound_room = sess.get("room_id")
            if bound_room and bound_room != payload.room_id:
                await leave_room(sid, bound_room, sess["username"])
                await sio.save_session(sid, {})

            async with session_factory() as session:
                room = await crud.add_participant(session, payload.room_id, payload.username)
                participants = list(room.participants)
                messages = await crud.get_recent_messages(session, payload.room_id)
        except STORE_ERRORS:
            logger.exception("Error joining room %s", payload.room_id)
            await emit_error(sid, "Failed to join room")
            return

        await sio.enter_room(sid, payload.room_id)
        await sio.save_session(sid, {"room_id": payload.room_id, "username": payload.username})

        joined = RoomJoinedOut(
            room_id=payload.room_id,
            participants=participants,
            messages=[MessageOut.model_validate(m) for m in messages],
        )
        await sio.emit("room-joined", joined.to_wire(), to=sid)
        await sio.emit(
            "user-joined",
            ParticipantsOut(username=payload.username, participants=participants).to_wire(),
            room=payload.room_id,
            skip_sid=sid,
        )
        logger.info("%s joined room %s", payload.username, payload.room_id)

    @sio.on("send-message")
    async def send_message(sid, data):
        try:
            payload = SendMessageIn.model_validate(data)
        except ValidationError:
            await emit_error(sid, INVALID_PAYLOAD)
            return

        try:
            async with session_factory() as session:
                msg = await crud.create_message(session, payload.room_id, payload.sender, payload.text)
                out = MessageOut.model_validate(msg)
        except STORE_ERRORS:
            logger.exception("Error sending message in room %s", payload.room_id)
            await emit_error(sid, "Failed to send message")
            return

        await sio.emit("new-message", out.to_wire(), room=payload.room_id)
        logger.info("Message sent in room %s by %s", payload.room_id, payload.sender)

    @sio.on("typing")
    async def typing(sid, data):
        try:
            payload = TypingIn.model_validate(data)
        except ValidationError:
            logger.warning("Dropping malformed typing event from %s", sid)
            return

        await sio.emit(
            "user-typing",
            UserTypingOut(username=payload.username, is_typing=payload.is_typing).to_wire(),
            room=payload.room_id,
            skip_sid=sid,
        )

    @sio.on("clear-room-chat")
    async def clear_room_chat(sid, data):
        try:
            payload = ClearRoomChatIn.model_validate(data)
        except ValidationError:
            await emit_error(sid, INVALID_PAYLOAD)
            return

        try:
            async with session_factory() as session:
                removed = await crud.clear_room_messages(session, payload.room_id)
        except STORE_ERRORS:
            logger.exception("Error clearing room %s", payload.room_id)
            await emit_error(sid, "Failed to clear chat")
            return

        await sio.emit("room-chat-cleared", {}, room=payload.room_id)
        logger.info("All %d messages cleared in room %s", removed, payload.room_id)

    @sio.event
    async def disconnect(sid, reason=None):
        sess = await sio.get_session(sid)
        if sess and "room_id" in sess and "username" in sess:
            try:
                await leave_room(sid, sess["room_id"], sess["username"])
            except STORE_ERRORS:
                # nobody left to tell
                logger.exception("Error handling disconnect of %s from room %s", sid, sess["room_id"])
        logger.info("User disconnected: %s", sid)
