"""
Очереди подбора собеседников и машина состояний пары (in-memory).
Все мутации очередей и ссылок на партнёра идут под одной блокировкой,
ввода-вывода внутри нет: уведомления отправляет вызывающий код.
"""
import logging
import threading
from collections import deque
from dataclasses import dataclass
from enum import Enum

from .constants import CHAT_MODES

logger = logging.getLogger(__name__)


class PairingError(Exception):
    """Базовая ошибка подбора пары."""


class InvalidMode(PairingError):
    """Неизвестный режим чата."""


class AlreadyAssigned(PairingError):
    """Соединение уже в очереди или уже в паре."""


class NoPartner(PairingError):
    """У соединения нет партнёра."""


class ConnectionState(str, Enum):
    UNASSIGNED = "unassigned"
    WAITING = "waiting"
    PAIRED = "paired"
    RELEASED = "released"


@dataclass
class Connection:
    id: str
    mode: str | None = None
    partner_id: str | None = None  # ссылка на партнёра только по id, через реестр
    state: ConnectionState = ConnectionState.UNASSIGNED


class ModeQueue:
    """FIFO очередь id соединений, ожидающих пару в одном режиме."""

    def __init__(self, mode: str):
        self.mode = mode
        self._ids: deque[str] = deque()

    def __len__(self) -> int:
        return len(self._ids)

    def push(self, conn_id: str) -> None:
        self._ids.append(conn_id)

    def pop_pair(self) -> tuple[str, str] | None:
        """Снять двух самых старых ожидающих или None, если их меньше двух."""
        if len(self._ids) < 2:
            return None
        first = self._ids.popleft()
        second = self._ids.popleft()
        return first, second

    def remove(self, conn_id: str) -> bool:
        try:
            self._ids.remove(conn_id)
        except ValueError:
            return False
        return True

    def snapshot(self) -> list[str]:
        return list(self._ids)


class Matchmaker:
    """
    Владелец реестра соединений и очередей по режимам.
    Переходы: unassigned -> waiting -> paired -> released;
    оставшийся партнёр после отключения возвращается в unassigned.
    """

    def __init__(self, modes: list[str] | None = None):
        self._modes = list(modes or CHAT_MODES)
        self._lock = threading.Lock()
        self._connections: dict[str, Connection] = {}
        self._queues: dict[str, ModeQueue] = {m: ModeQueue(m) for m in self._modes}

    def register(self, conn_id: str) -> Connection:
        with self._lock:
            if conn_id in self._connections:
                raise AlreadyAssigned(f"connection {conn_id} already registered")
            conn = Connection(id=conn_id)
            self._connections[conn_id] = conn
            return conn

    def get(self, conn_id: str) -> Connection | None:
        with self._lock:
            return self._connections.get(conn_id)

    def request_mode(self, conn_id: str, mode: str) -> Connection:
        """
        Поставить соединение в очередь режима mode.
        InvalidMode — режим неизвестен, AlreadyAssigned — уже в очереди или в паре.
        """
        if mode not in self._modes:
            raise InvalidMode(f"unknown chat mode {mode!r}")
        with self._lock:
            conn = self._connections.get(conn_id)
            if conn is None:
                raise PairingError(f"unknown connection {conn_id}")
            if conn.state is not ConnectionState.UNASSIGNED:
                raise AlreadyAssigned(f"connection {conn_id} is {conn.state.value}")
            conn.mode = mode
            conn.state = ConnectionState.WAITING
            self._queues[mode].push(conn_id)
            logger.debug("pairing: waiting list for %s: %s", mode, self._queues[mode].snapshot())
            return conn

    def try_match(self, mode: str) -> tuple[Connection, Connection] | None:
        """
        Если в очереди режима двое и больше — снять двух самых старых и связать их.
        Обе ссылки на партнёра выставляются до возврата пары.
        """
        with self._lock:
            queue = self._queues.get(mode)
            if queue is None:
                return None
            pair = queue.pop_pair()
            if pair is None:
                return None
            first = self._connections[pair[0]]
            second = self._connections[pair[1]]
            first.partner_id = second.id
            second.partner_id = first.id
            first.state = second.state = ConnectionState.PAIRED
        logger.info("pairing: matched %s <-> %s in mode %s", first.id, second.id, mode)
        return first, second

    def partner_of(self, conn_id: str) -> Connection | None:
        try:
            return self.require_partner(conn_id)
        except NoPartner:
            return None

    def require_partner(self, conn_id: str) -> Connection:
        with self._lock:
            conn = self._connections.get(conn_id)
            if conn is None or conn.partner_id is None:
                raise NoPartner(conn_id)
            partner = self._connections.get(conn.partner_id)
            if partner is None:
                raise NoPartner(conn_id)
            return partner

    def is_paired(self, conn_id: str, partner_id: str) -> bool:
        """Связаны ли conn_id и partner_id друг с другом прямо сейчас."""
        with self._lock:
            conn = self._connections.get(conn_id)
            partner = self._connections.get(partner_id)
            return (
                conn is not None
                and partner is not None
                and conn.partner_id == partner_id
                and partner.partner_id == conn_id
            )

    def release(self, conn_id: str) -> Connection | None:
        """
        Отключение: убрать из очереди, снять обратную ссылку у партнёра,
        удалить из реестра. Возвращает бывшего партнёра (уже unassigned) или None.
        """
        with self._lock:
            conn = self._connections.pop(conn_id, None)
            if conn is None:
                return None
            if conn.state is ConnectionState.WAITING and conn.mode:
                self._queues[conn.mode].remove(conn_id)
            partner = None
            if conn.partner_id is not None:
                partner = self._connections.get(conn.partner_id)
                if partner is not None and partner.partner_id == conn_id:
                    partner.partner_id = None
                    partner.mode = None
                    partner.state = ConnectionState.UNASSIGNED
                else:
                    partner = None
            conn.partner_id = None
            conn.state = ConnectionState.RELEASED
        return partner

    def waiting(self, mode: str) -> list[str]:
        with self._lock:
            queue = self._queues.get(mode)
            return queue.snapshot() if queue else []

    def queue_counts(self) -> dict[str, int]:
        """Количество ожидающих по каждому режиму."""
        with self._lock:
            return {mode: len(q) for mode, q in self._queues.items()}

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)

    def reset(self) -> None:
        with self._lock:
            self._connections.clear()
            self._queues = {m: ModeQueue(m) for m in self._modes}


matchmaker = Matchmaker()
