"""
Application Module
==================

The single-owner application controller and its event model.

    - events.py: Event types and the bounded EventQueue
    - panels.py: Panel mutual-exclusion policy
    - controller.py: ApplicationController (owns AppState)
    - factory.py: Builds the controller from Settings
"""

from silentmap.app.controller import ApplicationController
from silentmap.app.events import EventQueue
from silentmap.app.factory import build_controller

__all__ = [
    "ApplicationController",
    "EventQueue",
    "build_controller",
]
