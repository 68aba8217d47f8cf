"""Record entity: one captured note and its optional fingerprint."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class Record(BaseModel):
    """
    A persisted note as seen by the core.

    Instances are snapshots handed out by a record store; they are frozen
    and never cached beyond one pipeline invocation. The only field that
    changes over a note's lifetime is ``fingerprint`` (absent -> present),
    which surfaces as a new snapshot from the store.
    """

    id: int = Field(..., description="Store-assigned identifier")
    text: str = Field(..., description="Transcribed note text")
    created_at: datetime = Field(..., description="Capture time (UTC)")
    fingerprint: bytes | None = Field(
        default=None, description="Little-endian float32 embedding, absent until generated"
    )
    duration_ms: int = Field(default=0, ge=0, description="Recording duration in milliseconds")

    model_config = {
        "frozen": True,
    }

    @field_validator("text")
    @classmethod
    def text_not_empty(cls, v: str) -> str:
        """Validate that text is not empty."""
        if not v or not v.strip():
            from memoembed.lib.exceptions import EmptyInputError

            raise EmptyInputError()
        return v

    @property
    def has_fingerprint(self) -> bool:
        """Whether a fingerprint has been attached."""
        return self.fingerprint is not None

    def preview(self, length: int = 50) -> str:
        """Shortened text for log lines."""
        if len(self.text) <= length:
            return self.text
        return f"{self.text[:length]}..."
