"""Webhook command handlers."""

from botbridge.commands.webhooks.process_webhook_command import ProcessWebhookCommand

__all__ = ["ProcessWebhookCommand"]
