"""taskhub: task-management backend with recurring task generation."""

__version__ = "1.0.0"
