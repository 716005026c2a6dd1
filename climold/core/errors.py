"""
Root of the climold exception hierarchy.
"""


class ClimoldError(Exception):
    """Base exception for every error climold reports to its caller."""

    pass
