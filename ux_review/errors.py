"""Error taxonomy for the analysis pipeline.

``PreconditionError`` aborts a whole batch before any screen is touched and is
turned into a top-level error response. Everything else is raised for a single
screen and caught by the batch coordinator, which records it on that screen's
result and moves on.
"""


class UXReviewError(Exception):
    """Base class for every error raised by the pipeline."""


class PreconditionError(UXReviewError):
    """Batch cannot start: missing file key, credential, token or screens."""


class UnsupportedProviderError(UXReviewError):
    def __init__(self, provider_id: str) -> None:
        self.provider_id = provider_id
        super().__init__(f"Unsupported AI provider: {provider_id}. Please select a valid provider.")


class ProviderError(UXReviewError):
    """A backend call returned a non-success status or an unreadable envelope."""

    def __init__(self, provider: str, http_status: int, backend_message: str) -> None:
        self.provider = provider
        self.http_status = http_status
        self.backend_message = backend_message
        super().__init__(f"{provider} API error ({http_status}): {backend_message}")


class ProviderAuthError(ProviderError):
    """Credential is malformed for a backend that needs a composite key."""

    def __init__(self, provider: str, backend_message: str) -> None:
        super().__init__(provider, 401, backend_message)


class ProviderTimeoutError(ProviderError):
    """A polling backend did not reach a terminal state in time."""

    def __init__(self, provider: str, waited_seconds: float) -> None:
        self.waited_seconds = waited_seconds
        super().__init__(provider, 504, f"prediction did not finish within {waited_seconds:.0f}s")


class UnparsableResponseError(UXReviewError):
    """Backend replied but no JSON array of findings could be located."""


class ImageExportError(UXReviewError):
    """The host could not render or deliver the screen's image."""


class CommentPostError(UXReviewError):
    def __init__(self, http_status: int, message: str) -> None:
        self.http_status = http_status
        super().__init__(f"Comment post failed ({http_status}): {message}")
