"""
Aiohttp Probe Adapter

Architectural Intent:
- Implements HttpProbePort with a single aiohttp GET per probe
- Redirects are reported, not followed, so 301/302 reach the health checker
- Connection failures and timeouts become a response with no status ("000")
"""

from __future__ import annotations
import asyncio
import logging

import aiohttp

from kubeship.domain.ports.http_probe_port import ProbeResponse

logger = logging.getLogger(__name__)

BODY_PREVIEW_BYTES = 200


class AiohttpProbeAdapter:
    def __init__(
        self,
        total_timeout: float = 10.0,
        connect_timeout: float = 5.0,
        verify_tls: bool = True,
    ):
        self.timeout = aiohttp.ClientTimeout(total=total_timeout, connect=connect_timeout)
        self.verify_tls = verify_tls

    async def get(self, url: str) -> ProbeResponse:
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.get(
                    url, allow_redirects=False, ssl=self.verify_tls
                ) as response:
                    body = await response.content.read(BODY_PREVIEW_BYTES)
                    return ProbeResponse(
                        status=response.status,
                        body_preview=body.decode(errors="replace"),
                    )
        except asyncio.TimeoutError:
            return ProbeResponse(error=f"timed out after {self.timeout.total}s")
        except aiohttp.ClientError as e:
            logger.debug("Probe of %s failed: %s", url, e)
            return ProbeResponse(error=str(e) or type(e).__name__)
