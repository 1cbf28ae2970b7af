"""
Connection settings used by the client factory methods.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class RedisConfig:
    """Redis/RESP connection configuration."""
    host: str = "127.0.0.1"
    port: int = 6379
    username: Optional[str] = None
    password: Optional[str] = None
    db: int = 0
    ssl: bool = False
    timeout: int = 30
    decode_responses: bool = False

    def client_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments accepted by both redis.Redis and redis.asyncio.Redis."""
        return {
            "host": self.host,
            "port": self.port,
            "username": self.username,
            "password": self.password,
            "db": self.db,
            "ssl": self.ssl,
            "socket_connect_timeout": self.timeout,
            "decode_responses": self.decode_responses,
        }
