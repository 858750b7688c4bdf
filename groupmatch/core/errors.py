"""
Base error taxonomy. Service modules subclass these so that the API layer can
map whole families of errors onto HTTP status codes.
"""


class NotFound(Exception):
    pass


class Forbidden(Exception):
    pass


class Unauthenticated(Exception):
    pass


class StorageError(Exception):
    pass
