"""
Менеджер WebSocket: подключения по id соединения и отправка событий.
"""
import logging
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class WSManager:
    def __init__(self):
        self._by_id: dict[str, WebSocket] = {}

    def connect(self, ws: WebSocket, conn_id: str) -> None:
        self._by_id[conn_id] = ws

    def disconnect(self, conn_id: str) -> None:
        self._by_id.pop(conn_id, None)

    def is_connected(self, conn_id: str) -> bool:
        return conn_id in self._by_id

    async def send_to(self, conn_id: str, payload: dict[str, Any]) -> bool:
        ws = self._by_id.get(conn_id)
        if not ws:
            return False
        try:
            await ws.send_json(payload)
            return True
        except Exception as e:
            logger.warning("send_to %s: %s", conn_id, e)
            return False

    def reset(self) -> None:
        self._by_id.clear()


manager = WSManager()
