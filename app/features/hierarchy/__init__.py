"""
Hierarchical role-based access control.

A fixed five-role ladder (user < tl < manager < admin < master) decides who
may view, create, edit and delete which directory records, and scopes the
directory and its statistics to the actor's branch of the management tree.
"""
