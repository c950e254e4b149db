"""Conversation ledger models"""
from sqlalchemy import Boolean, Column, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Chat(Base):
    """Chat metadata, one row per conversation"""
    __tablename__ = "chats"

    jid = Column(String(255), primary_key=True)
    name = Column(String(255))
    channel = Column(String(64))
    is_group = Column(Boolean, default=False)
    last_message_time = Column(String(64))


class Message(Base):
    """A stored conversation turn; never updated after insert"""
    __tablename__ = "messages"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(255), nullable=False, unique=True)
    chat_jid = Column(String(255), nullable=False, index=True)
    sender = Column(String(255))
    sender_name = Column(String(255))
    content = Column(Text, nullable=False)
    timestamp = Column(String(64), nullable=False, index=True)
    is_from_me = Column(Boolean, default=False)
    is_bot_message = Column(Boolean, default=False)


class SessionRecord(Base):
    """Agent session identifier for a conversation slot"""
    __tablename__ = "sessions"

    group_folder = Column(String(255), primary_key=True)
    session_id = Column(String(255), nullable=False)
