"""AgentSentry: heuristic security auditing for AI-agent project trees."""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"
