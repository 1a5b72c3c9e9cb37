class RecordError(Exception):
    """Failure scoped to a single record operation."""

    retryable = False


class InvalidRecord(RecordError, ValueError):
    pass


class RecordNotFound(RecordError, ValueError):
    pass


class StoreUnavailable(RecordError):
    retryable = True
