"""repomirror - agent-driven repository migration."""

__version__ = "0.1.0"
