"""
Timer error taxonomy.

Workspace primitives raise these; the manager, editor and coordinator
boundary catches them, logs, and leaves prior state untouched.
"""


class TallyError(Exception):
    """Base class for all TimeTally errors."""


class ValidationError(TallyError):
    """Empty name, non-positive duration or non-numeric input."""


class DuplicateNameError(TallyError):
    """A list with that name already exists."""

    def __init__(self, name: str):
        super().__init__(f"List {name!r} already exists")
        self.name = name


class UnknownListError(TallyError):
    """No list with that name exists."""

    def __init__(self, name: str):
        super().__init__(f"No list named {name!r}")
        self.name = name


class LastListError(TallyError):
    """The only remaining list cannot be deleted."""


class InvalidOrderError(TallyError):
    """A proposed list order is not a permutation of the existing names."""


class MalformedImportError(TallyError):
    """An import document could not be parsed."""


class PersistenceUnavailable(TallyError):
    """The backing store could not be read or written."""
