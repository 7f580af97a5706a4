"""Computer opponents driving the same controller entry points as a human."""

from .random_agent import RandomAgent, create_agents

__all__ = [
    "RandomAgent",
    "create_agents",
]
