from typing import Any, Dict, Optional

import httpx
import structlog

from parley.domain.tool.capability import Capability

logger = structlog.get_logger(__name__)


def remote_capability(
    name: str,
    description: str,
    url: str,
    parameters: Optional[Dict[str, str]] = None,
    method: str = "POST",
    headers: Optional[Dict[str, str]] = None,
    timeout: float = 30.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Capability:
    """Capability that forwards its arguments as a JSON body to an HTTP endpoint.

    The response body is returned as text; non-2xx responses raise so the
    status reaches the model as tool output.
    """

    method = method.upper()

    async def invoke(_orchestrator: Any, args: Dict[str, Any]) -> str:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            logger.debug("Calling remote capability", tool_name=name, method=method, url=url)
            response = await client.request(method, url, headers=headers, json=args)
            response.raise_for_status()
            return response.text

    return Capability(
        name=name,
        description=description,
        parameters=parameters or {},
        invoke=invoke,
    )
