"""Exceptions raised while classifying incoming admin events."""


class EventError(Exception):
    """Base exception for events that cannot be turned into a tuple."""
    pass


class UnsupportedEventError(EventError):
    """Event shape is outside the handled resource/path combinations.

    Expected for most host events; callers drop these quietly.
    """
    pass


class MalformedPayloadError(EventError):
    """Event representation is missing a required attribute or is not JSON."""
    pass
