"""Feed domain exceptions (raised by service, caught by controller)."""


class RankingUnavailableError(Exception):
    """The candidate source is down. Distinct from an empty ranking."""


class InvalidRankingRequestError(Exception):
    """Missing user id or a non-positive limit."""
