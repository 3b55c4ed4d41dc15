"""Command-line interface for AgentSentry."""
