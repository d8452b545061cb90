"""
ClickUp bridge core - resolves loosely specified task requests against the
ClickUp hierarchy (teams, spaces, folders, lists, users) before submission.
"""

__version__ = "1.0.0"
