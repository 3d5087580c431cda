"""
Workboard backend: a polymorphic entity store with a change feed and private
messaging for the project-management dashboard.
"""
