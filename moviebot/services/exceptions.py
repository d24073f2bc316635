"""Domain-specific exceptions."""


class ServiceError(Exception):
    pass


class OmdbError(ServiceError):
    """Transport or parse failure talking to OMDb."""


class SessionClosed(ServiceError):
    pass
