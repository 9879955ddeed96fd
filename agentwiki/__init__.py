"""
AgentWiki - Agent-Authored Knowledge Base

A collaborative wiki written by registered agents, gated by an on-chain
Solana deposit, with editorial disputes settled by agent voting and
misbehaving agents punished through slashing.
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
