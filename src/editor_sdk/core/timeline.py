"""Timeline tracks and clip placements."""

import logging
import math
import uuid
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from .project import ProjectDescriptor

logger = logging.getLogger("TemplateEditorMCP.core.timeline")

PIXELS_PER_SECOND = 50  # at zoom 1.0
DEFAULT_CLIP_DURATION = 10.0


class TrackKind(str, Enum):
    VIDEO = "video"
    AUDIO = "audio"


class Track(BaseModel):
    """A horizontal lane in the timeline."""
    id: str
    name: str
    kind: TrackKind


class TimelineClip(BaseModel):
    """A placed piece of content on a track.

    Clips don't own media; duration is independent of the source length.
    """
    id: str = Field(default_factory=lambda: f"clip-{uuid.uuid4().hex[:8]}")
    name: str
    start_time: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    duration: float = Field(gt=0, allow_inf_nan=False)
    track_id: str

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration


def _default_tracks() -> list[Track]:
    return [
        Track(id="video-1", name="Video Track", kind=TrackKind.VIDEO),
        Track(id="audio-1", name="Audio Track", kind=TrackKind.AUDIO),
    ]


class Timeline(BaseModel):
    """Tracks plus the clips placed on them.

    Every clip's track_id points at an existing track. Clips on the same
    track may overlap; the later clip in `clips` draws on top.
    Operations on unknown ids do nothing and report that through their
    return value.
    """
    tracks: list[Track] = Field(default_factory=_default_tracks)
    clips: list[TimelineClip] = Field(default_factory=list)

    # ── Lookups ─────────────────────────────────────────────────────────

    def get_track(self, track_id: str) -> Optional[Track]:
        for t in self.tracks:
            if t.id == track_id:
                return t
        return None

    def get_clip(self, clip_id: str) -> Optional[TimelineClip]:
        for c in self.clips:
            if c.id == clip_id:
                return c
        return None

    def clips_on_track(self, track_id: str) -> list[TimelineClip]:
        return [c for c in self.clips if c.track_id == track_id]

    @property
    def duration(self) -> float:
        return max((c.end_time for c in self.clips), default=0.0)

    # ── Tracks ──────────────────────────────────────────────────────────

    def add_track(self, kind: TrackKind | str) -> Track:
        """Append a track, numbered among existing tracks of the same kind."""
        kind = TrackKind(kind)
        count = sum(1 for t in self.tracks if t.kind == kind)
        track = Track(
            id=f"{kind.value}-{uuid.uuid4().hex[:8]}",
            name=f"{kind.value.capitalize()} Track {count + 1}",
            kind=kind,
        )
        self.tracks.append(track)
        return track

    def remove_track(self, track_id: str) -> bool:
        """Remove a track together with every clip assigned to it."""
        if self.get_track(track_id) is None:
            return False
        tracks = [t for t in self.tracks if t.id != track_id]
        clips = [c for c in self.clips if c.track_id != track_id]
        removed = len(self.clips) - len(clips)
        self.tracks, self.clips = tracks, clips
        logger.info(f"Removed track {track_id} and {removed} clip(s)")
        return True

    # ── Clips ───────────────────────────────────────────────────────────

    def _default_video_track(self) -> Optional[Track]:
        for t in self.tracks:
            if t.kind == TrackKind.VIDEO:
                return t
        return None

    def add_clip(self, name: str, duration: float = DEFAULT_CLIP_DURATION,
                 track_id: Optional[str] = None,
                 start_time: float = 0.0) -> Optional[TimelineClip]:
        """Place a new clip. Without a track_id the first video track is used.

        Returns None, leaving the timeline unchanged, when the track is
        missing, the duration is not a positive finite number, or the start
        time is not finite.
        """
        if not (duration > 0 and math.isfinite(duration)) or not math.isfinite(start_time):
            return None
        track = self.get_track(track_id) if track_id else self._default_video_track()
        if track is None:
            return None
        clip = TimelineClip(
            name=name,
            start_time=max(0.0, start_time),
            duration=duration,
            track_id=track.id,
        )
        self.clips.append(clip)
        return clip

    def move_clip(self, clip_id: str, start_time: float) -> Optional[TimelineClip]:
        """Set a clip's start time, clamped at 0. Overlaps are allowed."""
        clip = self.get_clip(clip_id)
        if clip is None or not math.isfinite(start_time):
            return None
        clip.start_time = max(0.0, start_time)
        return clip

    def drag_clip(self, clip_id: str, offset_px: float,
                  zoom: float = 1.0) -> Optional[TimelineClip]:
        """Place a clip from a pointer offset measured from the timeline's left edge."""
        if not (zoom > 0 and math.isfinite(offset_px)):
            return None
        seconds = max(0.0, offset_px / (PIXELS_PER_SECOND * zoom))
        return self.move_clip(clip_id, round(seconds * 10) / 10)

    def delete_clip(self, clip_id: str) -> bool:
        original_len = len(self.clips)
        self.clips = [c for c in self.clips if c.id != clip_id]
        return len(self.clips) < original_len

    def seed_from_project(self, project: ProjectDescriptor) -> Optional[TimelineClip]:
        """Place a clip for a freshly selected template at the start of the first video track."""
        duration = project.duration if project.duration > 0 else DEFAULT_CLIP_DURATION
        return self.add_clip(project.name, duration=duration)

    def to_summary(self) -> list[dict]:
        return [
            {
                "id": t.id,
                "name": t.name,
                "kind": t.kind.value,
                "clips": [
                    {
                        "id": c.id,
                        "name": c.name,
                        "time_range": f"{c.start_time:.1f}s - {c.end_time:.1f}s",
                    }
                    for c in self.clips_on_track(t.id)
                ],
            }
            for t in self.tracks
        ]
