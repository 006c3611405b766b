"""Persistent processing state (``state.json``)."""

import logging
from datetime import datetime
from pathlib import Path

from pydantic import (
    AwareDatetime,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_serializer,
)

from .errors import StateException
from .utils import atomic_write_text, format_rfc3339

logger = logging.getLogger(__name__)


class ProcessingState(BaseModel):
    """Pointer to the last processed minutes comment.

    ``is_fresh`` is True when no state file exists yet; it is never written.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    last_processed_at: AwareDatetime | None = Field(default=None, alias="lastProcessedAt")
    last_comment_id: str = Field(default="", alias="lastCommentId")
    is_fresh: bool = Field(default=False, exclude=True)

    @field_serializer("last_processed_at")
    def _serialize_time(self, value: datetime | None) -> str | None:
        return format_rfc3339(value) if value else None

    @property
    def last_comment_id_int(self) -> int:
        try:
            return int(self.last_comment_id)
        except ValueError:
            return 0


class StateManager:
    """Read and write the state file."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def load(self) -> ProcessingState:
        """Load the state.

        Returns:
            The stored state, or a fresh state when the file does not exist

        Raises:
            StateException: If the file exists but cannot be read or parsed
        """
        if not self.path.exists():
            logger.info(f"No state file at {self.path}, starting fresh")
            return ProcessingState(is_fresh=True)

        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise StateException(f"Failed to read state file {self.path}: {e}") from e

        try:
            return ProcessingState.model_validate_json(text)
        except ValidationError as e:
            raise StateException(f"Invalid state file {self.path}: {e}") from e

    def save(self, state: ProcessingState) -> None:
        """Atomically write the state.

        Raises:
            StateException: If the file cannot be written
        """
        text = state.model_dump_json(by_alias=True, indent=2)
        try:
            atomic_write_text(self.path, text + "\n")
        except OSError as e:
            raise StateException(f"Failed to write state file {self.path}: {e}") from e

        logger.info(
            f"Saved state: lastProcessedAt={state.last_processed_at}, "
            f"lastCommentId={state.last_comment_id}"
        )

    def update(self, processed_at: datetime, comment_id: int | str) -> ProcessingState:
        state = ProcessingState(
            last_processed_at=processed_at, last_comment_id=str(comment_id)
        )
        self.save(state)
        return state
