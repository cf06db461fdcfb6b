class EnergyIndexError(Exception): ...


class CursorError(EnergyIndexError): ...


class CursorInvalidatedError(CursorError): ...


class IngestError(EnergyIndexError): ...


class StorageError(EnergyIndexError): ...


class ConfigError(EnergyIndexError): ...


def require(
    condition: bool, message: str, exc: type[EnergyIndexError] = EnergyIndexError
):
    """Raise the given exception if condition is False."""
    if not condition:
        raise exc(message)
