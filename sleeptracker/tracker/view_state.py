from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class TrackerViewState(BaseModel):
    """Everything a presentation shell renders for the tracker screen."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    start_enabled: bool
    stop_enabled: bool
    clear_enabled: bool
    history_text: str
    tonight_id: int | None = None
    pending_rating_id: int | None = None
    cleared_pending: bool = False
    error_message: str | None = None
