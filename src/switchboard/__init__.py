"""
Switchboard

Local provider gateway: register agent-runtime and OpenAI-compatible
providers, refresh their model catalogs, and dispatch chat messages while
keeping conversation history and agent session continuity.
"""

__version__ = "0.1.0"
