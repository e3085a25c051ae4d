"""Base service class for domain services."""


class Service:
    """Base class for all domain services.

    Domain services hold logic that spans several entities, such as matching
    a provider identity against accounts and links.
    """

    pass
