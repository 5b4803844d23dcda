"""Exception hierarchy for Pressroom.

Client errors map to 4xx responses, generation errors abort the pipeline,
narration errors are soft and only ever reported on the generation result.
"""

from typing import Optional


ADMIN_ACTION_MESSAGE = (
    "The {service} service is not accepting our credentials. "
    "An administrator needs to check the configured API key."
)


class PressroomError(Exception):
    """Base class for all Pressroom errors."""


# Client errors


class InvalidRequestError(PressroomError):
    """Request rejected without side effects (HTTP 400)."""

    status_code = 400


class ArticleNotFoundError(PressroomError):
    """Referenced article does not exist (HTTP 404)."""

    status_code = 404

    def __init__(self, article_id: int) -> None:
        super().__init__(f"Article {article_id} not found")
        self.article_id = article_id


# Hard failures


class GenerationError(PressroomError):
    """A pipeline stage failed and generation was aborted."""

    stage: Optional[str] = None


class NoSourcesFoundError(GenerationError):
    """The search API returned no results for the topic."""

    stage = "sources"

    def __init__(self, topic: str) -> None:
        super().__init__(f"No sources found for topic '{topic}'")
        self.topic = topic


class SearchError(GenerationError):
    """The search API call failed."""

    stage = "sources"


class ContentGenerationError(GenerationError):
    """The language model call failed or returned an unusable article."""

    stage = "content"


class ImageGenerationError(GenerationError):
    """The image model call failed."""

    stage = "image"


class MediaDownloadError(GenerationError):
    """A generated media file could not be downloaded after retries."""

    stage = "image"


class PersistenceError(GenerationError):
    """The draft article could not be written."""

    stage = "persist"


class ServiceAuthError(GenerationError):
    """A third-party API rejected our credentials.

    The message is safe to show to end users; the vendor error is kept on
    ``vendor_message`` for logs only.
    """

    def __init__(self, service: str, vendor_message: str = "", stage: Optional[str] = None) -> None:
        super().__init__(ADMIN_ACTION_MESSAGE.format(service=service))
        self.service = service
        self.vendor_message = vendor_message
        self.stage = stage


# Soft failures


class NarrationError(PressroomError):
    """Narration could not be produced."""


class NarrationTimeoutError(NarrationError):
    """Narration did not finish within the configured bound."""
