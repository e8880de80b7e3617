"""Routine planner: daily schedule synthesis from routines and a task backlog."""

__version__ = "0.1.0"
