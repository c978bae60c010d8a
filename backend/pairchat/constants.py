"""Константы режимов чата и типов сообщений протокола."""
from enum import Enum

CHAT_MODES: list[str] = ["text", "video"]


class EventType(str, Enum):
    # клиент -> сервер
    CHAT_MODE = "chatMode"
    MESSAGE = "message"
    # сервер -> клиент
    MATCHED = "matched"
    PARTNER_DISCONNECTED = "partnerDisconnected"
