"""
Authentication module for the clinic system.

This module provides authentication and authorization functionality including:
- Patient and doctor registration
- Credential verification and session token issuing
- The authorization gate protecting every non-public route
- Role-based access control
"""
