"""Outbound command handlers."""

from botbridge.commands.outbound.send_outbound_command import SendOutboundCommand

__all__ = ["SendOutboundCommand"]
