"""Template Editor MCP Server - import templates and edit a timeline through MCP tools."""

from mcp.server.fastmcp import FastMCP, Context
import json
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Dict, Any, Optional

# SDK imports
from editor_sdk.core.state import SessionState
from editor_sdk.core.timeline import TrackKind
from editor_sdk.intake.errors import TemplateParseError
from editor_sdk.intake.sources import TemplateSource
from editor_sdk.marketplace.envato import EnvatoClient, to_project

# Configure logging
logging.basicConfig(level=os.getenv("TEMPLATE_EDITOR_LOG_LEVEL", "INFO"),
                    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger("TemplateEditorMCP")

DEFAULT_SEARCH_COUNT = 12


# ── Global State ────────────────────────────────────────────────────────

_session_state = SessionState()
_marketplace: Optional[EnvatoClient] = None


def _get_marketplace() -> EnvatoClient:
    global _marketplace
    if _marketplace is None:
        _marketplace = EnvatoClient()
    return _marketplace


def _state_payload() -> dict:
    state = _session_state.state
    history = _session_state.history
    return {
        **state.model_dump(),
        "history_index": history.index,
        "history_length": history.length,
        "can_undo": history.can_undo,
        "can_redo": history.can_redo,
    }


# ── Server Setup ────────────────────────────────────────────────────────

@asynccontextmanager
async def server_lifespan(server: FastMCP) -> AsyncIterator[Dict[str, Any]]:
    try:
        logger.info("TemplateEditorMCP server starting up")
        status = _get_marketplace().get_status()
        if not status["configured"]:
            logger.warning("Envato token not set - marketplace tools will serve mock templates")
        yield {}
    finally:
        logger.info("TemplateEditorMCP server shut down")


mcp = FastMCP("TemplateEditorMCP", lifespan=server_lifespan)


# ═══════════════════════════════════════════════════════════════════════
# TEMPLATE TOOLS
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def import_template(ctx: Context, file_path: str) -> str:
    """Import a template file and select it.

    Supported: Apple Motion (.motn), Final Cut Pro (.fcp, .fcpxml),
    After Effects JSON export (.aep.json).

    Parameters:
    - file_path: Path to the template file
    """
    try:
        source = TemplateSource.from_path(Path(file_path))
        project = _session_state.import_template(source)
    except TemplateParseError as e:
        return f"Error: {e}"
    except OSError as e:
        return f"Error reading template file: {e}"

    return json.dumps({
        "status": "imported",
        "template": project.to_summary(),
        "selected_clip": _session_state.state.selected_clip,
    }, indent=2)


@mcp.tool()
def get_template(ctx: Context, template_id: str = "") -> str:
    """Get the full normalized description of a template.

    Parameters:
    - template_id: Template to show (defaults to the selected one)
    """
    if template_id:
        project = _session_state.templates.get(template_id)
    else:
        project = _session_state.selected_template()
    if project is None:
        return "Error: No such template. Use import_template or use_marketplace_template first."
    return project.model_dump_json(indent=2)


@mcp.tool()
def list_templates(ctx: Context) -> str:
    """List templates imported in this session."""
    templates = _session_state.list_templates()
    if not templates:
        return "No templates imported yet."
    return json.dumps(templates, indent=2)


# ═══════════════════════════════════════════════════════════════════════
# MARKETPLACE TOOLS
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def search_marketplace(ctx: Context, query: str = "", category: str = "videohive",
                       count: int = DEFAULT_SEARCH_COUNT) -> str:
    """Search Envato for templates (mock catalogue when no token is configured).

    Parameters:
    - query: Search text
    - category: videohive, photodune, graphicriver or audiojungle
    - count: Number of results
    """
    client = _get_marketplace()
    results = client.search_templates(query=query, category=category, per_page=count)
    if not results:
        return f"No templates found for '{query}'"
    return json.dumps({
        "mock": not client.configured,
        "results": [{
            "id": t.id,
            "name": t.name,
            "category": t.category,
            "duration": t.duration,
            "resolution": t.resolution,
            "rating": t.rating,
            "price": t.price,
            "author": t.author,
        } for t in results[:count]],
    }, indent=2)


@mcp.tool()
def use_marketplace_template(ctx: Context, template_id: str) -> str:
    """Select a marketplace template and place it on the timeline.

    Parameters:
    - template_id: Envato item id from search_marketplace
    """
    template = _get_marketplace().get_template_details(template_id)
    if template is None:
        return f"Error: Marketplace template '{template_id}' not found."

    project = to_project(template)
    clip = _session_state.use_template(project)
    return json.dumps({
        "status": "selected",
        "template": project.to_summary(),
        "clip_id": clip.id if clip else None,
    }, indent=2)


# ═══════════════════════════════════════════════════════════════════════
# TIMELINE TOOLS
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def get_timeline(ctx: Context) -> str:
    """Get all tracks and the clips placed on them."""
    return json.dumps({
        "duration": _session_state.timeline.duration,
        "tracks": _session_state.timeline.to_summary(),
    }, indent=2)


@mcp.tool()
def add_track(ctx: Context, kind: str = "video") -> str:
    """Add a timeline track.

    Parameters:
    - kind: "video" or "audio"
    """
    if kind not in {k.value for k in TrackKind}:
        return f"Error: Unknown track kind '{kind}'. Use 'video' or 'audio'."
    track = _session_state.add_track(kind)
    return json.dumps(track.model_dump(mode="json"), indent=2)


@mcp.tool()
def remove_track(ctx: Context, track_id: str) -> str:
    """Remove a track and every clip on it.

    Parameters:
    - track_id: ID of the track to remove
    """
    if _session_state.remove_track(track_id):
        return f"Removed track {track_id}. Tracks remaining: {len(_session_state.timeline.tracks)}"
    return f"Track '{track_id}' not found."


@mcp.tool()
def add_clip(ctx: Context, name: str = "", duration: float = 10.0,
             track_id: str = None, start_time: float = None) -> str:
    """Place a clip on the timeline.

    Parameters:
    - name: Clip name (defaults to the selected template's name)
    - duration: Clip length in seconds
    - track_id: Target track (defaults to the first video track)
    - start_time: Start in seconds (defaults to the playhead)
    """
    if not duration > 0:
        return "Error: duration must be positive."
    if not name:
        project = _session_state.selected_template()
        if project is None:
            return "Error: No clip name given and no template selected."
        name = project.name
    if start_time is None:
        start_time = _session_state.state.current_time

    clip = _session_state.timeline.add_clip(name, duration=duration,
                                            track_id=track_id, start_time=start_time)
    if clip is None:
        return f"Error: Track '{track_id}' not found." if track_id else "Error: No video track."
    return json.dumps(clip.model_dump(), indent=2)


@mcp.tool()
def move_clip(ctx: Context, clip_id: str, start_time: float) -> str:
    """Move a clip to a new start time (negative values snap to 0).

    Parameters:
    - clip_id: ID of the clip
    - start_time: New start time in seconds
    """
    clip = _session_state.timeline.move_clip(clip_id, start_time)
    if clip is None:
        return f"Clip '{clip_id}' not found."
    return json.dumps(clip.model_dump(), indent=2)


@mcp.tool()
def delete_clip(ctx: Context, clip_id: str) -> str:
    """Delete a clip from the timeline.

    Parameters:
    - clip_id: ID of the clip
    """
    if _session_state.delete_clip(clip_id):
        return f"Deleted clip {clip_id}. Clips remaining: {len(_session_state.timeline.clips)}"
    return f"Clip '{clip_id}' not found."


# ═══════════════════════════════════════════════════════════════════════
# EDITOR STATE & HISTORY TOOLS
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def get_editor_state(ctx: Context) -> str:
    """Get selection, playhead, playback, zoom and undo/redo availability."""
    return json.dumps(_state_payload(), indent=2)


@mcp.tool()
def select_clip(ctx: Context, clip_id: str = None) -> str:
    """Select a clip, or clear the selection when no id is given.

    Parameters:
    - clip_id: ID of the clip to select
    """
    if not _session_state.select_clip(clip_id):
        return f"Clip '{clip_id}' not found."
    return json.dumps(_state_payload(), indent=2)


@mcp.tool()
def seek(ctx: Context, seconds: float) -> str:
    """Move the playhead.

    Parameters:
    - seconds: Playhead position (negative values snap to 0)
    """
    _session_state.seek(seconds)
    return json.dumps(_state_payload(), indent=2)


@mcp.tool()
def toggle_playback(ctx: Context) -> str:
    """Toggle play/pause."""
    _session_state.toggle_playback()
    return json.dumps(_state_payload(), indent=2)


@mcp.tool()
def set_zoom(ctx: Context, zoom: float) -> str:
    """Set the timeline zoom factor (clamped to 0.5 - 3.0).

    Parameters:
    - zoom: Zoom factor, 1.0 = 50 pixels per second
    """
    _session_state.set_zoom(zoom)
    return json.dumps(_state_payload(), indent=2)


@mcp.tool()
def undo(ctx: Context) -> str:
    """Undo the last editor state change."""
    if _session_state.undo() is None:
        return "Nothing to undo."
    return json.dumps(_state_payload(), indent=2)


@mcp.tool()
def redo(ctx: Context) -> str:
    """Redo the last undone editor state change."""
    if _session_state.redo() is None:
        return "Nothing to redo."
    return json.dumps(_state_payload(), indent=2)


# ═══════════════════════════════════════════════════════════════════════
# MCP PROMPT
# ═══════════════════════════════════════════════════════════════════════

@mcp.prompt()
def template_editing_workflow() -> str:
    """Recommended workflow for editing with a template"""
    return """You are helping the user build a video from a template. Follow this workflow:

1. **Pick a Template**: Either
   - Use import_template() with a .motn, .fcp/.fcpxml or .aep.json file, or
   - Use search_marketplace() and then use_marketplace_template().
   Selecting a template places a clip for it on the first video track.

2. **Inspect**: Use get_template() to see layers, effects, text, duration,
   resolution and frame rate.

3. **Arrange the Timeline**: Use get_timeline() to see tracks and clips, then:
   - Use add_track() for extra video or audio lanes
   - Use add_clip(), move_clip() and delete_clip() to place content
   - Use remove_track() to drop a lane together with its clips

4. **Review**: Use seek(), toggle_playback() and set_zoom() to move around.

Tips:
- Clips may overlap on a track; the later clip draws on top
- Use undo() / redo() to step through selection, playhead and zoom changes
- Use get_editor_state() to see what is selected and whether undo/redo is available
"""


# ── Main ────────────────────────────────────────────────────────────────

def main():
    """Run the MCP server"""
    mcp.run()


if __name__ == "__main__":
    main()
