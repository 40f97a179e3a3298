"""
LOGISTICS App - Domain errors

Raised by the order lifecycle and chat services, translated to
HTTP responses by the views and to error frames by the consumers.
"""


class LifecycleError(ValueError):
    """Base class: the requested operation is not allowed."""


class OrderNotFound(LifecycleError):
    pass


class OrderAccessDenied(LifecycleError):
    """The user is not a party to this order (or has the wrong role)."""


class InvalidTransition(LifecycleError):
    """The order is not in a status that allows this change."""


class ChatClosed(LifecycleError):
    """Chat is only available while the order is accepted or in progress."""
