"""Experiments domain exceptions (raised by service, caught by caller)."""


class VariantAssignmentError(Exception):
    """No variant could be assigned (e.g. empty variant list)."""
