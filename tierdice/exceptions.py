"""Rules engine exception definitions.

Custom exception hierarchy for dice and combat resolution.
"""

from typing import Any


class RulesError(Exception):
    """Base exception for rules resolution."""

    pass


class InvalidInputError(RulesError):
    """Input rejected before any roll or mutation happened.

    Attributes:
        field: Name of the offending input, if known.
        value: The rejected value.
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
    ) -> None:
        super().__init__(message)
        self.field = field
        self.value = value


class ResourceExhaustedError(RulesError):
    """A required resource is missing or empty.

    Recoverable: the caller should surface it as a warning. No dice were
    rolled and nothing was mutated.

    Attributes:
        resource_id: Magazine, ammo or weapon identifier involved.
    """

    def __init__(self, message: str, resource_id: str | None = None) -> None:
        super().__init__(message)
        self.resource_id = resource_id


class MissingCounterpartError(RulesError):
    """An opposed test participant could not be found at resolution time.

    Attributes:
        request_id: The opposed request being resolved.
        missing_ids: Actor ids that were not available.
    """

    def __init__(
        self,
        message: str,
        request_id: str,
        missing_ids: tuple[str, ...] = (),
    ) -> None:
        super().__init__(message)
        self.request_id = request_id
        self.missing_ids = missing_ids


class HandshakeStateError(InvalidInputError):
    """Opposed request is not in a state that allows the operation.

    Attributes:
        request_id: The opposed request.
        state: Current handshake state value.
    """

    def __init__(self, message: str, request_id: str, state: str) -> None:
        super().__init__(message, field="request_id", value=request_id)
        self.request_id = request_id
        self.state = state
