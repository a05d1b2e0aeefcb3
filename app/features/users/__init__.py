"""
User directory feature module.

Persistence, HTTP routes and permission-checked mutations for the
organization's user records.
"""
