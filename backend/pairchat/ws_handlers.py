"""
Обработка сообщений WebSocket: chatMode, message, отключение.
При матче — отправка matched обоим собеседникам.
"""
import json
import logging
import uuid

from fastapi import WebSocket
from starlette.websockets import WebSocketDisconnect

from .constants import EventType
from .pairing import AlreadyAssigned, InvalidMode, PairingError, matchmaker
from .relay import relay
from .ws_manager import manager

logger = logging.getLogger(__name__)


def _new_conn_id() -> str:
    return uuid.uuid4().hex


async def handle_chat_mode(conn_id: str, mode: str) -> None:
    try:
        matchmaker.request_mode(conn_id, mode)
    except InvalidMode:
        logger.warning("WS: invalid chat mode %r from %s", mode, conn_id)
        return
    except AlreadyAssigned as e:
        logger.warning("WS: chatMode ignored for %s: %s", conn_id, e)
        return
    logger.info("WS: %s requested mode %s", conn_id, mode)
    pair = matchmaker.try_match(mode)
    if not pair:
        return
    # Обе ссылки уже выставлены в try_match, только потом уведомляем.
    # Во время отправки пара может распасться: перед каждым matched проверяем заново.
    first, second = pair
    for conn, partner in ((first, second), (second, first)):
        if not matchmaker.is_paired(conn.id, partner.id):
            logger.info("WS: pair %s <-> %s broke before matched, skipping %s", first.id, second.id, conn.id)
            continue
        await manager.send_to(conn.id, {"type": EventType.MATCHED.value})


async def handle_ws_message(raw: str, conn_id: str) -> bool:
    """
    Обрабатывает одно сообщение от клиента.
    Возвращает False если соединение нужно закрыть.
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("WS: invalid JSON from %s: %s", conn_id, e)
        return True
    if not isinstance(data, dict):
        logger.warning("WS: expected object from %s, got %s", conn_id, type(data).__name__)
        return True
    t = data.get("type")
    logger.debug("WS: msg from %s type=%s", conn_id, t)
    if t == EventType.CHAT_MODE:
        mode = data.get("data")
        if not isinstance(mode, str):
            logger.warning("WS: invalid chat mode %r from %s", mode, conn_id)
            return True
        await handle_chat_mode(conn_id, mode)
        return True
    if t == EventType.MESSAGE:
        await relay(matchmaker, manager, conn_id, data.get("data"))
        return True
    logger.warning("WS: unknown message type %r from %s", t, conn_id)
    return True


async def handle_disconnect(conn_id: str) -> None:
    partner = matchmaker.release(conn_id)
    manager.disconnect(conn_id)
    if partner:
        await manager.send_to(partner.id, {"type": EventType.PARTNER_DISCONNECTED.value})
        logger.info("WS: %s notified of partner %s disconnect", partner.id, conn_id)


async def ws_loop(ws: WebSocket) -> None:
    """
    Приём соединения, регистрация и цикл приёма сообщений до отключения.
    """
    conn_id = None
    try:
        await ws.accept()
        new_id = _new_conn_id()
        matchmaker.register(new_id)
        conn_id = new_id
        manager.connect(ws, conn_id)
        logger.info("WS: user connected %s", conn_id)
        while True:
            message = await ws.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000), message.get("reason"))
            msg = message.get("text")
            if msg is None:
                logger.warning("WS: non-text frame from %s ignored", conn_id)
                continue
            if not await handle_ws_message(msg, conn_id):
                break
    except WebSocketDisconnect as e:
        logger.info("WS: client disconnected code=%s reason=%s conn_id=%s", e.code, e.reason or "", conn_id)
    except PairingError as e:
        logger.warning("WS: pairing error conn_id=%s: %s", conn_id, e)
    except Exception as e:
        logger.exception("WS: error conn_id=%s: %s", conn_id, e)
    finally:
        if conn_id:
            await handle_disconnect(conn_id)
            logger.info("WS: user disconnected %s", conn_id)
