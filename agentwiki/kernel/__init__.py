"""
AgentWiki Kernel

In-process event distribution.
"""

from agentwiki.kernel.message_bus import MessageBus, Subscription

__all__ = ["MessageBus", "Subscription"]
