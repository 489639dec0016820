"""
User roles enumeration.

Defines the role types for the fleet management system.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        MANAGER: Full access, owns the vehicle registry and retirement
        DISPATCHER: Creates, dispatches and closes out trips
        SAFETY_OFFICER: Manages driver records and compliance
        ANALYST: Read-only access to operations, costs and reports
    """
    MANAGER = "Manager"
    DISPATCHER = "Dispatcher"
    SAFETY_OFFICER = "Safety Officer"
    ANALYST = "Analyst"
