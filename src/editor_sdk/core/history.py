"""Editor state snapshots with linear undo/redo."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class EditorState(BaseModel):
    """One immutable snapshot of what the editor is showing."""
    model_config = ConfigDict(frozen=True)

    selected_template: Optional[str] = None  # template id in the session library
    selected_clip: Optional[str] = None
    current_time: float = Field(default=0.0, ge=0)  # seconds
    is_playing: bool = False
    zoom: float = Field(default=1.0, gt=0)

    def evolve(self, **changes) -> "EditorState":
        """Return a validated copy with `changes` applied."""
        return EditorState.model_validate({**self.model_dump(), **changes})


class History(BaseModel):
    """Append-only snapshot log with a cursor.

    Committing after an undo drops every snapshot past the cursor first.
    Undo at the head and redo at the tail are no-ops.
    """
    snapshots: list[EditorState] = Field(default_factory=lambda: [EditorState()])
    index: int = 0

    @model_validator(mode="after")
    def _check_index(self) -> "History":
        if not self.snapshots:
            raise ValueError("history needs at least one snapshot")
        if not 0 <= self.index < len(self.snapshots):
            raise ValueError(f"index {self.index} out of range for {len(self.snapshots)} snapshots")
        return self

    @property
    def current(self) -> EditorState:
        return self.snapshots[self.index]

    @property
    def length(self) -> int:
        return len(self.snapshots)

    @property
    def can_undo(self) -> bool:
        return self.index > 0

    @property
    def can_redo(self) -> bool:
        return self.index < len(self.snapshots) - 1

    def commit(self, state: EditorState) -> EditorState:
        """Make `state` the current snapshot, discarding any redo branch."""
        del self.snapshots[self.index + 1:]
        self.snapshots.append(state)
        self.index = len(self.snapshots) - 1
        return state

    def undo(self) -> Optional[EditorState]:
        """Step back one snapshot. Returns None when already at the first one."""
        if not self.can_undo:
            return None
        self.index -= 1
        return self.current

    def redo(self) -> Optional[EditorState]:
        """Step forward one snapshot. Returns None when already at the latest one."""
        if not self.can_redo:
            return None
        self.index += 1
        return self.current
