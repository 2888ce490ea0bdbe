"""Participant channels, wire messages, and match logging."""

from .channels import Channel, ChannelManager, Envelope
from .markdown_logger import MarkdownLogger

__all__ = ["Channel", "ChannelManager", "Envelope", "MarkdownLogger"]
