"""
HTTP Probe Port

Architectural Intent:
- One bounded HTTP GET against an application endpoint
- Distinguishes "no response" (timeout, refused) from an HTTP error status
"""

from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable


@dataclass(frozen=True)
class ProbeResponse:
    status: Optional[int] = None
    error: str = ""
    body_preview: str = ""

    @property
    def responded(self) -> bool:
        return self.status is not None

    @property
    def code(self) -> str:
        """Three-digit code; '000' when nothing answered."""
        return f"{self.status:03d}" if self.status is not None else "000"


@runtime_checkable
class HttpProbePort(Protocol):
    async def get(self, url: str) -> ProbeResponse:
        ...
