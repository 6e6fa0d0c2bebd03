"""gist-planner: recurring task planner synced through a GitHub Gist."""

__version__ = "0.1.0"
