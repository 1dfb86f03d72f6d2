import asyncio
import logging
from typing import Awaitable, Optional

from soulmate.core.config import settings

logger = logging.getLogger(__name__)


async def best_effort(call: Awaitable, what: str, timeout: Optional[float] = None) -> Optional[str]:
    """
    Await an enrichment call under a timeout.

    Returns the stripped text, or None on timeout, error or a non-text/empty
    response. Never raises (cancellation of the caller still propagates).
    """
    timeout = settings.ENRICHMENT_TIMEOUT_SECONDS if timeout is None else timeout
    try:
        text = await asyncio.wait_for(call, timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"Enrichment '{what}' timed out after {timeout}s")
        return None
    except Exception as e:
        logger.exception(f"Enrichment '{what}' failed: {e}")
        return None

    if not isinstance(text, str) or not text.strip():
        logger.warning(f"Enrichment '{what}' returned an unusable response: {type(text).__name__}")
        return None
    return text.strip()
