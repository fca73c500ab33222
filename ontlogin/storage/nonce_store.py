"""Nonce Authority: mint nonces bound to an action and consume them once."""

import logging
import os
import threading
import time
import uuid
from abc import ABC, abstractmethod
from typing import Callable, Dict, Tuple

import pymysql
from dotenv import load_dotenv

load_dotenv()

log = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300


class NonceNotFoundError(LookupError):
    """Nonce is unknown, expired or already consumed."""


class NonceAuthority(ABC):
    """Issues one-time nonces and hands back the action bound to each."""

    @abstractmethod
    def mint(self, action: int) -> str:
        """Generate and record a fresh nonce bound to action."""

    @abstractmethod
    def resolve_action(self, nonce: str) -> int:
        """
        Return the action bound to nonce and invalidate it.

        Raises:
            NonceNotFoundError: if nonce is unknown, expired or already consumed
        """


def generate_nonce() -> str:
    """Random UUID4 nonce."""
    return str(uuid.uuid4())


class MemoryNonceStore(NonceAuthority):
    """In-process nonce table, safe to share between request threads."""

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._nonces: Dict[str, Tuple[int, float]] = {}  # nonce -> (action, issued_at)

    def mint(self, action: int) -> str:
        nonce = generate_nonce()
        with self._lock:
            self._purge_expired()
            self._nonces[nonce] = (action, self._clock())
        return nonce

    def resolve_action(self, nonce: str) -> int:
        with self._lock:
            entry = self._nonces.pop(nonce, None)
        if entry is None:
            raise NonceNotFoundError(f"nonce not found: {nonce}")
        action, issued_at = entry
        if self._clock() - issued_at > self.ttl_seconds:
            raise NonceNotFoundError(f"nonce expired: {nonce}")
        return action

    def _purge_expired(self):
        now = self._clock()
        expired = [n for n, (_, issued_at) in self._nonces.items() if now - issued_at > self.ttl_seconds]
        for n in expired:
            del self._nonces[n]


def get_db_connection():
    """Get MySQL database connection."""
    return pymysql.connect(
        host=os.getenv('DB_HOST', 'localhost'),
        port=int(os.getenv('DB_PORT', 3306)),
        user=os.getenv('DB_USER', 'ontlogin'),
        password=os.getenv('DB_PASSWORD', 'ontlogin'),
        database=os.getenv('DB_NAME', 'ontlogin'),
        charset='utf8mb4',
        cursorclass=pymysql.cursors.DictCursor
    )


def init_database(connect: Callable = get_db_connection):
    """Initialize the nonces table."""
    conn = connect()
    try:
        with conn.cursor() as cursor:
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS nonces (
                    nonce CHAR(36) NOT NULL,
                    action INT NOT NULL,
                    created_ms BIGINT NOT NULL,
                    PRIMARY KEY (nonce)
                ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;
            """)
        conn.commit()
        log.info("Nonce table initialized")
    finally:
        conn.close()


class MySQLNonceStore(NonceAuthority):
    """Durable nonce table shared by several server processes."""

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, connect: Callable = get_db_connection):
        self.ttl_seconds = ttl_seconds
        self._connect = connect

    def mint(self, action: int) -> str:
        nonce = generate_nonce()
        conn = self._connect()
        try:
            with conn.cursor() as cursor:
                cursor.execute(
                    "INSERT INTO nonces (nonce, action, created_ms) VALUES (%s, %s, %s)",
                    (nonce, int(action), int(time.time() * 1000))
                )
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
        return nonce

    def resolve_action(self, nonce: str) -> int:
        conn = self._connect()
        try:
            with conn.cursor() as cursor:
                cursor.execute(
                    "SELECT action, created_ms FROM nonces WHERE nonce = %s FOR UPDATE",
                    (nonce,)
                )
                row = cursor.fetchone()
                if row:
                    cursor.execute("DELETE FROM nonces WHERE nonce = %s", (nonce,))
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

        if not row:
            raise NonceNotFoundError(f"nonce not found: {nonce}")
        age_ms = int(time.time() * 1000) - row['created_ms']
        if age_ms > self.ttl_seconds * 1000:
            raise NonceNotFoundError(f"nonce expired: {nonce}")
        return row['action']


if __name__ == "__main__":
    import sys
    if len(sys.argv) > 1 and sys.argv[1] == "--init":
        logging.basicConfig(level=logging.INFO)
        init_database()
