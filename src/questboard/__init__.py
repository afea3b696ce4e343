"""Questboard - single-user Kanban board with XP scoring.

This package provides the task state machine and scoring engine, a
SQLAlchemy-backed task store exposed over a FastAPI HTTP API, and two
unattended maintenance agents (auto-starter and stale sweeper) that act
on the board through that API.
"""

__version__ = "0.1.0"
