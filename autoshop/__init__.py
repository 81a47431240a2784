"""
Autoshop - Session and Diagnostics Pipeline

Server-side request pipeline for the Autoshop web application.

Architecture:
- Each module is self-contained with clear interfaces
- Collaborators (store, logger, config) are passed in explicitly
- No module reads process-wide state after startup

Modules:
- session: Session records and their persistence
- middleware: Session, inactivity, diagnostics and error boundary layers
- errors: Error reporting facade and exception types
- api: Wire models shared with clients
- client: Client-side request wrapper and log correlator
"""

__version__ = "1.0.0"
