"""
Port reservation shared by every project in one host.

The ``PortAcquisitionManager`` is owned by the host and knows which ports
each project holds. Each adapter gets its own ``PortAcquisitionClient``;
disposing the client hands every port it still holds back to the manager.
"""

from __future__ import annotations

import asyncio
import socket
import uuid
from typing import Dict, Iterable, Optional, Set

from .errors import PortUnavailableError
from .logging_utils import LoggerLike, ensure_structured_logger

DEFAULT_PORT_RANGE = 100


def _is_port_free(host: str, port: int) -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind((host, port))
        except OSError:
            return False
    return True


class PortAcquisitionManager:

    def __init__(self, logger: LoggerLike = None, *, host: str = "127.0.0.1") -> None:
        self.logger = ensure_structured_logger(logger, fallback_name="PortAcquisitionManager")
        self.host = host
        self._reservations: Dict[int, str] = {}
        self._lock = asyncio.Lock()

    def reserved_ports(self, owner: Optional[str] = None) -> Set[int]:
        return {port for port, holder in self._reservations.items() if owner is None or holder == owner}

    async def request_available_port(self, owner: str, start_port: int, end_port: Optional[int] = None) -> int:
        """Reserve the first free port in ``[start_port, end_port)``."""
        end_port = end_port if end_port is not None else start_port + DEFAULT_PORT_RANGE
        async with self._lock:
            for port in range(start_port, min(end_port, 65536)):
                if port in self._reservations:
                    continue
                if not await asyncio.to_thread(_is_port_free, self.host, port):
                    continue
                self._reservations[port] = owner
                self.logger.debug("Reserved port %d for %s", port, owner)
                return port

        raise PortUnavailableError(f"No available port between {start_port} and {end_port} for {owner}")

    def release_ports(self, owner: str, ports: Iterable[int]) -> None:
        for port in ports:
            if self._reservations.get(port) == owner:
                del self._reservations[port]
                self.logger.debug("Released port %d from %s", port, owner)
            else:
                self.logger.warning("Port %d is not held by %s", port, owner)


class PortAcquisitionClient:

    def __init__(self, manager: PortAcquisitionManager, logger: LoggerLike = None, *, owner: Optional[str] = None) -> None:
        self.manager = manager
        self.logger = ensure_structured_logger(logger, fallback_name="PortAcquisitionClient")
        self.owner = owner or f"client-{uuid.uuid4().hex[:8]}"
        self._ports: Set[int] = set()

    @property
    def ports(self) -> Set[int]:
        return set(self._ports)

    async def request_available_port(self, start_port: int, end_port: Optional[int] = None) -> int:
        port = await self.manager.request_available_port(self.owner, start_port, end_port)
        self._ports.add(port)
        return port

    def release_port(self, port: int) -> None:
        if port not in self._ports:
            return
        self._ports.discard(port)
        self.manager.release_ports(self.owner, [port])

    def dispose(self) -> None:
        if self._ports:
            self.logger.debug("Releasing %d ports held by %s", len(self._ports), self.owner)
            self.manager.release_ports(self.owner, sorted(self._ports))
            self._ports.clear()


__all__ = ["PortAcquisitionClient", "PortAcquisitionManager"]
