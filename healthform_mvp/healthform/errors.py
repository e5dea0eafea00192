from typing import Optional


class ProfilePipelineError(RuntimeError):
    """Base class for everything analyze() can raise.

    `user_message` is safe to show as-is; `str(err)` may carry more detail
    for logs.
    """

    user_message = "An unexpected error occurred during processing."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.user_message)
        self.message = message or self.user_message


class InvalidInputError(ProfilePipelineError):
    user_message = "Please check your input and try again."

    def __init__(self, message: str):
        super().__init__(message)
        # input errors carry their own display text
        self.user_message = message


class UpstreamUnavailableError(ProfilePipelineError):
    user_message = "The analysis service is unavailable right now. Please try again shortly."
    retryable = True


class MalformedResponseError(ProfilePipelineError):
    user_message = "Could not parse response into the required schema."

    def __init__(self, message: Optional[str] = None, raw: Optional[str] = None):
        super().__init__(message)
        self.raw = raw


class SchemaViolationError(ProfilePipelineError):
    user_message = "The analysis result did not match the expected format."

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(f"{path}: {message}" if path else message)
        self.path = path
        self.detail = message
        if path:
            self.user_message = f"The analysis result did not match the expected format (field: {path})."
