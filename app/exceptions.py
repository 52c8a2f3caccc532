"""
Ingestion Error Taxonomy

Every failure the ingestion core can produce maps to one of these types.
The pipeline catches them at its boundary and turns them into IngestResult
outcomes; none of them reach the query side.
"""


class ChatPulseError(Exception):
    """Base class for ingestion and storage errors."""

    pass


class MalformedPayload(ChatPulseError):
    """
    Raised by the normalizer when a raw platform payload lacks a required
    field (native id, author, content, timestamp) or has the wrong shape.
    Permanent: the payload is rejected and never retried.
    """

    def __init__(self, platform: str, reason: str):
        self.platform = platform
        self.reason = reason
        super().__init__(f"Malformed {platform} payload: {reason}")


class NotIngestible(ChatPulseError):
    """
    Raised by the normalizer for well-formed platform events that carry no
    new message (Telegram edits, membership changes, callback queries).
    The event is acknowledged and skipped.
    """

    def __init__(self, platform: str, reason: str):
        self.platform = platform
        self.reason = reason
        super().__init__(f"Ignored {platform} event: {reason}")


class DuplicateId(ChatPulseError):
    """Raised by the store when a message id has already been committed. Benign."""

    def __init__(self, message_id: str):
        self.message_id = message_id
        super().__init__(f"Message {message_id} already exists")


class ScoringUnavailable(ChatPulseError):
    """
    Raised when the sentiment scorer cannot answer (timeout, transport error,
    unusable response). Transient: the caller retries with backoff.
    """

    pass


class StorageFailure(ChatPulseError):
    """Raised when a commit fails. Fatal for that message; no partial state is kept."""

    pass
