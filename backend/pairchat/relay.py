"""Пересылка сообщений между собеседниками пары."""
import logging
from typing import Any

from .constants import EventType
from .pairing import Matchmaker, NoPartner
from .ws_manager import WSManager

logger = logging.getLogger(__name__)


async def relay(mm: Matchmaker, ws_manager: WSManager, conn_id: str, payload: Any) -> bool:
    """
    Переслать payload партнёру без изменений.
    Без партнёра сообщение молча отбрасывается. Возвращает True, если кадр ушёл в транспорт.
    """
    try:
        partner = mm.require_partner(conn_id)
    except NoPartner:
        logger.debug("relay: %s has no partner, message dropped", conn_id)
        return False
    return await ws_manager.send_to(
        partner.id,
        {"type": EventType.MESSAGE.value, "data": payload},
    )
