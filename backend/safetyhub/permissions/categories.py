# Overview: Permission category constants for grouping related permissions.


class PermissionCategory:
    """Permission categories for organization and display."""
    CATALOG = "CATALOG"
    USERS = "USERS"
