"""
Dashboard statistics scoped to the caller's branch of the organization.
"""
