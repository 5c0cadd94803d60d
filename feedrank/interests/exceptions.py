# Domain exceptions raised by the interests service layer.
# The controller layer catches these and converts them to HTTPException.


class InvalidInteractionError(Exception):
    """Missing user, unknown interaction kind or malformed topic list."""


class InterestStoreError(Exception):
    """The interest persistence layer failed or timed out."""
