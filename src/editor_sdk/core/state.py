"""Editing session: template library, timeline and undo history."""

import logging
from typing import Optional

from pydantic import BaseModel, Field

from ..intake.decoders import parse_template
from ..intake.sources import TemplateSource
from .history import EditorState, History
from .project import ProjectDescriptor
from .timeline import Timeline, TimelineClip, TrackKind

logger = logging.getLogger("TemplateEditorMCP.core.state")

MIN_ZOOM = 0.5
MAX_ZOOM = 3.0
ZOOM_STEP = 0.25


class SessionState(BaseModel):
    """Everything one editing session holds.

    Editor state changes are committed to `history`; timeline edits are
    applied directly and only touch history when they invalidate the
    current clip selection.
    """
    templates: dict[str, ProjectDescriptor] = Field(default_factory=dict)
    timeline: Timeline = Field(default_factory=Timeline)
    history: History = Field(default_factory=History)

    @property
    def state(self) -> EditorState:
        return self.history.current

    def _commit(self, **changes) -> EditorState:
        return self.history.commit(self.state.evolve(**changes))

    # ── Templates ───────────────────────────────────────────────────────

    def import_template(self, source: TemplateSource) -> ProjectDescriptor:
        """Decode a template file and make it the selected template.

        Parse errors propagate before anything in the session changes.
        """
        project = parse_template(source)
        self.use_template(project)
        return project

    def use_template(self, project: ProjectDescriptor) -> Optional[TimelineClip]:
        """Register a project, seed a clip for it and select both."""
        self.templates[project.id] = project
        clip = self.timeline.seed_from_project(project)
        self._commit(
            selected_template=project.id,
            selected_clip=clip.id if clip else self.state.selected_clip,
        )
        logger.info(f"Selected template '{project.name}' ({project.id})")
        return clip

    def selected_template(self) -> Optional[ProjectDescriptor]:
        if self.state.selected_template is None:
            return None
        return self.templates.get(self.state.selected_template)

    def list_templates(self) -> list[dict]:
        return [p.to_summary() for p in self.templates.values()]

    # ── Playback & view ─────────────────────────────────────────────────

    def select_clip(self, clip_id: Optional[str]) -> bool:
        if clip_id is not None and self.timeline.get_clip(clip_id) is None:
            return False
        self._commit(selected_clip=clip_id)
        return True

    def seek(self, seconds: float) -> EditorState:
        return self._commit(current_time=max(0.0, seconds))

    def set_playing(self, playing: bool) -> EditorState:
        return self._commit(is_playing=playing)

    def toggle_playback(self) -> EditorState:
        return self.set_playing(not self.state.is_playing)

    def set_zoom(self, zoom: float) -> EditorState:
        return self._commit(zoom=min(MAX_ZOOM, max(MIN_ZOOM, zoom)))

    def zoom_in(self) -> EditorState:
        return self.set_zoom(self.state.zoom + ZOOM_STEP)

    def zoom_out(self) -> EditorState:
        return self.set_zoom(self.state.zoom - ZOOM_STEP)

    # ── Timeline edits ──────────────────────────────────────────────────

    def _clear_stale_selection(self):
        selected = self.state.selected_clip
        if selected is not None and self.timeline.get_clip(selected) is None:
            self._commit(selected_clip=None)

    def add_track(self, kind: TrackKind | str):
        return self.timeline.add_track(kind)

    def drag_clip(self, clip_id: str, offset_px: float) -> Optional[TimelineClip]:
        return self.timeline.drag_clip(clip_id, offset_px, zoom=self.state.zoom)

    def delete_clip(self, clip_id: str) -> bool:
        removed = self.timeline.delete_clip(clip_id)
        self._clear_stale_selection()
        return removed

    def remove_track(self, track_id: str) -> bool:
        removed = self.timeline.remove_track(track_id)
        self._clear_stale_selection()
        return removed

    # ── History ─────────────────────────────────────────────────────────

    def undo(self) -> Optional[EditorState]:
        return self.history.undo()

    def redo(self) -> Optional[EditorState]:
        return self.history.redo()
