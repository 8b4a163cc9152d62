"""
Tickets Module
==============

Bounded Context for team tickets: creation, skill-based assignment,
lifecycle tracking and the activity audit trail.

Responsibilities:
- Score team members against a ticket's required skills and workload
- Drive tickets through pending -> assigned -> completed, and reopen
- Append one activity entry for every ticket change
- Expose members, tickets and activity over HTTP
"""

__version__ = "1.0.0"
