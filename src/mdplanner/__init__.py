"""Markdown-backed project planner: backlog, kanban and Gantt views over task files."""

__version__ = "0.1.0"
