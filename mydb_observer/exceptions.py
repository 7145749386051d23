# Observer Exceptions


class MyDBObserverError(Exception):
    """Base exception for all mydb-observer errors."""

    pass


class CollectionContractError(TypeError, MyDBObserverError):
    """Exception raised when an object cannot be observed because it lacks mutation entry points."""

    # Inherit from TypeError for semantic meaning (wrong kind of object)
    # Inherit from MyDBObserverError for categorization
    def __init__(self, *args, missing: list[str] | None = None):
        super().__init__(*args)
        self.missing = missing or []


class UnknownEntryPointError(KeyError, MyDBObserverError):
    """Exception raised when arguments are normalized for an entry point that is not intercepted."""

    pass
