"""TaskLinks - personal task management with per-user provisioning."""

__version__ = "0.1.0"
