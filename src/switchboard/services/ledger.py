"""Conversation ledger and agent session registry"""
from dataclasses import dataclass
from typing import List, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from switchboard.models.message import Chat, Message, SessionRecord
from switchboard.services.database import Database

logger = structlog.get_logger()


@dataclass
class MessageRecord:
    """A conversation turn as read from or written to the ledger"""
    id: str
    chat_jid: str
    sender: str
    sender_name: str
    content: str
    timestamp: str
    is_from_me: bool = False
    is_bot_message: bool = False


class ConversationLedger:
    """Append-only message history"""

    def __init__(self, database: Database):
        self.database = database

    async def store_chat_metadata(
        self, chat_jid: str, timestamp: str, name: str, channel: str, is_group: bool = False
    ) -> None:
        async with self.database.session() as session:
            chat = await session.get(Chat, chat_jid)
            if chat is None:
                session.add(Chat(jid=chat_jid, name=name, channel=channel,
                                 is_group=is_group, last_message_time=timestamp))
            elif not chat.last_message_time or timestamp > chat.last_message_time:
                chat.last_message_time = timestamp
            await session.commit()

    async def append_message(self, record: MessageRecord) -> None:
        async with self.database.session() as session:
            session.add(Message(
                id=record.id,
                chat_jid=record.chat_jid,
                sender=record.sender,
                sender_name=record.sender_name,
                content=record.content,
                timestamp=record.timestamp,
                is_from_me=record.is_from_me,
                is_bot_message=record.is_bot_message,
            ))
            await session.commit()
        logger.debug("Message stored", chat_jid=record.chat_jid, message_id=record.id)

    async def list_recent(self, chat_jid: str, limit: int) -> List[MessageRecord]:
        """Most recent ``limit`` messages, oldest first"""
        stmt = (
            select(Message)
            .where(Message.chat_jid == chat_jid)
            .order_by(Message.timestamp.desc(), Message.seq.desc())
            .limit(limit)
        )
        async with self.database.session() as session:
            rows = (await session.execute(stmt)).scalars().all()

        return [
            MessageRecord(
                id=row.id,
                chat_jid=row.chat_jid,
                sender=row.sender,
                sender_name=row.sender_name,
                content=row.content,
                timestamp=row.timestamp,
                is_from_me=bool(row.is_from_me),
                is_bot_message=bool(row.is_bot_message),
            )
            for row in reversed(rows)
        ]


class SessionRegistry:
    """One agent session identifier per conversation slot"""

    def __init__(self, database: Database):
        self.database = database

    async def get_session(self, group_folder: str) -> Optional[str]:
        async with self.database.session() as session:
            record = await session.get(SessionRecord, group_folder)
            return record.session_id if record else None

    async def set_session(self, group_folder: str, session_id: str) -> None:
        stmt = sqlite_insert(SessionRecord).values(
            group_folder=group_folder, session_id=session_id
        ).on_conflict_do_update(
            index_elements=[SessionRecord.group_folder],
            set_={"session_id": session_id},
        )
        async with self.database.session() as session:
            await session.execute(stmt)
            await session.commit()
        logger.info("Agent session updated", group_folder=group_folder)
