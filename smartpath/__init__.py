"""
SmartPath: adaptive question supply for AI-tutored study sessions.

Components:
- core: difficulty controller and error taxonomy
- content: question/plan/material records and the content sources that generate them
- session: prefetch queue, session state machine, plan progression, daily streak
- cli: interactive terminal front end
"""

__version__ = "1.0.0"
