"""
Outbound API: send activities to chat platforms.

Internal consumers POST an addressed activity; we resolve the adapter,
send, and return {"data": {"responses": [...]}}.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from botbridge.commands.outbound import SendOutboundCommand
from botbridge.core.registry import AdapterRegistry
from botbridge.routers.utils.dependencies import get_registry
from botbridge.schemas.activity import Activity

router = APIRouter(prefix="/outbound", tags=["outbound"])


@router.post("/{channel_id}", response_model=dict[str, Any])
async def send_outbound(
    channel_id: str,
    body: Activity,
    registry: AdapterRegistry = Depends(get_registry),
) -> dict[str, Any]:
    """Send an outbound activity to the specified channel."""
    return await SendOutboundCommand(registry).execute(channel_id, body)
