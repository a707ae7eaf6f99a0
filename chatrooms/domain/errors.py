# chatrooms/domain/errors.py


class ChatroomServiceError(Exception):
    """Base class for every error the core reports to its callers."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ChatroomServiceError):
    pass


class NotFoundError(ChatroomServiceError):
    pass


class NotMemberError(ChatroomServiceError):
    pass


class AlreadyMemberError(ChatroomServiceError):
    pass


class DuplicateNameError(ChatroomServiceError):
    pass


class TransientStoreError(ChatroomServiceError):
    """The store failed or timed out and nothing was written; retrying is safe."""


class DeliveryError(ChatroomServiceError):
    """A live push failed. Raised and handled inside the delivery hub only."""
