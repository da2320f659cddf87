# putik/services/errors.py


class NotFoundError(LookupError):
    """A requested record (part, vehicle, booking group, ...) does not exist."""
