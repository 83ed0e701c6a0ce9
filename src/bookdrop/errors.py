class BookdropError(Exception):
    """Base error carrying the HTTP status and the client-facing message."""

    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ClientInputError(BookdropError):
    status_code = 400
    message = "Invalid request"


class MissingBookError(ClientInputError):
    message = "No PDF file uploaded"


class MissingBookNameError(ClientInputError):
    message = "Book name is required"


class InvalidFileTypeError(ClientInputError):
    message = "Invalid file type"


class UnexpectedFieldError(ClientInputError):
    message = "Unexpected field"


class UploadTooLargeError(BookdropError):
    status_code = 413
    message = "File too large"


class ServerError(BookdropError):
    status_code = 500
