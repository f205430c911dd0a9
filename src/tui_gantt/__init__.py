"""TUI Gantt - Terminal UI Gantt chart scheduler."""

__version__ = "0.1.0"
