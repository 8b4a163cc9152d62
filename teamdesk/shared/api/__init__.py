"""
Shared API
==========

Middleware and exception handlers for the HTTP application.
"""
