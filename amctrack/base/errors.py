class InvalidInputError(ValueError):
    """A date or warranty duration the derivation rules cannot work with."""


class QueryFailure(RuntimeError):
    """The record store could not answer a reminder query."""


class DispatchFailure(RuntimeError):
    """The mail collaborator did not accept a reminder message."""
