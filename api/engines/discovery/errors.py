"""
Discovery engine exceptions
"""


class DiscoveryError(Exception):
    """Base class for discovery engine errors"""


class GatewayError(DiscoveryError):
    """A data access gateway call failed"""


class GatewayTimeoutError(GatewayError):
    """A data access gateway call exceeded its time budget"""


class SearchUnavailableError(DiscoveryError):
    """The catalog could not be queried for a search request"""

    def __init__(self, message: str = "Search unavailable"):
        super().__init__(message)


class RecommendationsUnavailableError(DiscoveryError):
    """Every recommendation source failed for a request"""

    def __init__(self, message: str = "Recommendations unavailable"):
        super().__init__(message)
