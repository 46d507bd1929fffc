from __future__ import annotations


class PresenceError(Exception):
    """Base class for errors raised while applying a protocol event.

    Raised before any state is mutated, so catching one means the event can
    simply be dropped.
    """

    code = "presence_error"

    def __init__(self, detail: str = ""):
        super().__init__(detail)
        self.detail = detail


class NotFound(PresenceError):
    code = "not_found"


class NotPaired(PresenceError):
    code = "not_paired"


class InvalidPosition(PresenceError):
    code = "invalid_position"


class InvalidPayload(PresenceError):
    code = "invalid_payload"
