"""
Tickets Interfaces Layer
========================

Interface adapters (controllers) for the tickets module.

This is the outermost layer - handles HTTP requests/responses and
delegates to application services.
"""

from teamdesk.tickets.interfaces.controllers import tickets_router

__all__ = ["tickets_router"]
