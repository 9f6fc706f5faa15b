"""Template decoders: Apple Motion, Final Cut Pro XML and After Effects JSON.

Each decoder maps one source format to a ProjectDescriptor and reports
failures only as UnsupportedFormat or MalformedSource. parse_template()
picks the decoder from the file extension.
"""

import json
import logging
import math
import uuid
from typing import Any, Callable, Optional

from lxml import etree
from pydantic import ValidationError

from ..core.project import (
    DEFAULT_FRAME_RATE,
    DEFAULT_HEIGHT,
    DEFAULT_WIDTH,
    Effect,
    Layer,
    LayerKind,
    ProjectDescriptor,
    Resolution,
    SourceFormat,
    TextOverlay,
    TextPosition,
)
from .errors import MalformedSource
from .sources import EXTENSION_FORMATS, FORMAT_LABELS, TemplateSource, detect_format

logger = logging.getLogger("TemplateEditorMCP.intake.decoders")

Decoder = Callable[[TemplateSource], ProjectDescriptor]

# FCP sequence and clip times are frame counts at a fixed 30 fps.
FCP_NOMINAL_FPS = 30

MOTION_DEFAULT_DURATION = 5.0
AEP_DEFAULT_DURATION = 10.0
AEP_DEFAULT_LAYER_DURATION = 5.0


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


def _describe_validation_error(e: ValidationError) -> str:
    err = e.errors()[0]
    loc = ".".join(str(part) for part in err["loc"])
    return f"{loc}: {err['msg']}" if loc else err["msg"]


# ── Final Cut Pro XML ───────────────────────────────────────────────────

def _fcp_seconds(value: Optional[str]) -> float:
    """Convert an FCP time attribute to seconds.

    Bare numbers are frame counts. Rational FCPXML times such as
    "3600/2400s" or "5s" are already in seconds.
    """
    if value is None or not value.strip():
        return 0.0
    value = value.strip()
    if value.endswith("s"):
        numerator, _, denominator = value[:-1].partition("/")
        seconds = float(numerator) / float(denominator or 1)
    else:
        seconds = float(value) / FCP_NOMINAL_FPS
    if not math.isfinite(seconds):
        raise ValueError(f"time {value!r} is not finite")
    return seconds


def _positive_int(value: Any, default: int) -> int:
    """Parse an integer-ish value; missing or non-positive falls back to default."""
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ValueError(f"expected a number, got {value!r}")
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"{value!r} is not a finite number")
    return int(number) if number >= 1 else default


def parse_fcpxml(xml_content: str, source_name: str = "") -> ProjectDescriptor:
    """Decode a Final Cut Pro XML document."""
    label = FORMAT_LABELS[SourceFormat.FCP]
    parser = etree.XMLParser(resolve_entities=False, no_network=True)
    try:
        root = etree.fromstring(xml_content.encode("utf-8"), parser)
    except (etree.XMLSyntaxError, ValueError) as e:
        raise MalformedSource(label, f"invalid XML ({e})") from e

    project = next(root.iter("project"), None)
    sequence = next(root.iter("sequence"), None)
    seq_attrs = sequence.attrib if sequence is not None else {}

    try:
        layers = []
        for index, clip in enumerate(root.iter("clip")):
            clip_props = {
                key: clip.get(key) for key in ("offset", "retime") if clip.get(key) is not None
            }
            layers.append(Layer(
                id=f"layer-{index}",
                name=clip.get("name") or f"Clip {index}",
                kind=LayerKind.VIDEO,
                start_time=_fcp_seconds(clip.get("start")),
                duration=_fcp_seconds(clip.get("duration")),
                properties=clip_props,
            ))

        effects = [
            Effect(
                id=f"effect-{index}",
                name=effect.get("name") or "Effect",
                type=effect.get("type") or "unknown",
            )
            for index, effect in enumerate(root.iter("effect"))
        ]

        properties: dict[str, Any] = {}
        if source_name:
            properties["source"] = source_name

        return ProjectDescriptor(
            id=_new_id("fcp"),
            name=(project.get("name") if project is not None else None) or "Final Cut Pro Template",
            source_format=SourceFormat.FCP,
            duration=_fcp_seconds(seq_attrs.get("duration")),
            resolution=Resolution(
                width=_positive_int(seq_attrs.get("width"), DEFAULT_WIDTH),
                height=_positive_int(seq_attrs.get("height"), DEFAULT_HEIGHT),
            ),
            frame_rate=_positive_int(seq_attrs.get("framerate"), DEFAULT_FRAME_RATE),
            layers=layers,
            effects=effects,
            properties=properties,
        )
    except ValidationError as e:
        raise MalformedSource(label, _describe_validation_error(e)) from e
    except (ValueError, ZeroDivisionError, OverflowError) as e:
        raise MalformedSource(label, f"bad time or size attribute ({e})") from e


def decode_fcpxml(source: TemplateSource) -> ProjectDescriptor:
    return parse_fcpxml(source.text(), source_name=source.name)


# ── Apple Motion ────────────────────────────────────────────────────────

def decode_motion(source: TemplateSource) -> ProjectDescriptor:
    """Describe a .motn file without opening the container.

    Only the file's name, size and modification time are used; the result
    always holds a single full-length video layer.
    """
    name = source.name
    if name.lower().endswith(".motn"):
        name = name[: -len(".motn")]

    return ProjectDescriptor(
        id=_new_id("motion"),
        name=name,
        source_format=SourceFormat.MOTION,
        duration=MOTION_DEFAULT_DURATION,
        resolution=Resolution(),
        frame_rate=DEFAULT_FRAME_RATE,
        layers=[Layer(
            id="motion-layer-1",
            name="Motion Template",
            kind=LayerKind.VIDEO,
            start_time=0.0,
            duration=MOTION_DEFAULT_DURATION,
            properties={"source": source.name},
        )],
        properties={
            "file_size": source.size,
            "last_modified": source.last_modified.isoformat(),
        },
    )


# ── After Effects JSON ──────────────────────────────────────────────────

def _get(data: dict, key: str, default: Any) -> Any:
    value = data.get(key)
    return default if value is None else value


def _number(value: Any, default: float) -> float:
    if value is None:
        return default
    if isinstance(value, bool):
        raise ValueError(f"expected a number, got {value!r}")
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"{value!r} is not a finite number")
    return number


def _objects(data: dict, key: str) -> list[dict]:
    items = data.get(key)
    if not isinstance(items, list):
        return []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValueError(f"{key}[{index}] is not an object")
    return items


def parse_aep_json(json_content: str) -> ProjectDescriptor:
    """Decode an After Effects project exported as JSON.

    Every field falls back to its default when absent or null. Array order
    is preserved for layers, effects and text.
    """
    label = FORMAT_LABELS[SourceFormat.AEP]
    try:
        data = json.loads(json_content)
    except (ValueError, RecursionError) as e:
        raise MalformedSource(label, f"invalid JSON ({e})") from e
    if not isinstance(data, dict):
        raise MalformedSource(label, "top-level JSON value must be an object")

    try:
        layers = [
            Layer(
                id=f"layer-{index}",
                name=_get(layer, "name", f"Layer {index}"),
                kind=_get(layer, "type", LayerKind.VIDEO),
                start_time=_get(layer, "startTime", 0.0),
                duration=_get(layer, "duration", AEP_DEFAULT_LAYER_DURATION),
                opacity=_get(layer, "opacity", 1.0),
                blend_mode=_get(layer, "blendMode", "normal"),
                properties=_get(layer, "properties", {}),
            )
            for index, layer in enumerate(_objects(data, "layers"))
        ]

        effects = [
            Effect(
                id=f"effect-{index}",
                name=_get(effect, "name", "Effect"),
                type=_get(effect, "type", "unknown"),
                parameters=_get(effect, "parameters", {}),
            )
            for index, effect in enumerate(_objects(data, "effects"))
        ]

        text = [
            TextOverlay(
                id=f"text-{index}",
                content=_get(item, "content", ""),
                font_family=_get(item, "fontFamily", "Arial"),
                font_size=_get(item, "fontSize", 24),
                color=_get(item, "color", "#ffffff"),
                position=_get(item, "position", TextPosition()),
                alignment=_get(item, "alignment", "left"),
            )
            for index, item in enumerate(_objects(data, "text"))
        ]

        return ProjectDescriptor(
            id=_new_id("aep"),
            name=_get(data, "name", "After Effects Template"),
            source_format=SourceFormat.AEP,
            duration=_number(data.get("duration"), AEP_DEFAULT_DURATION),
            resolution=Resolution(
                width=_positive_int(data.get("width"), DEFAULT_WIDTH),
                height=_positive_int(data.get("height"), DEFAULT_HEIGHT),
            ),
            frame_rate=_positive_int(data.get("frameRate"), DEFAULT_FRAME_RATE),
            layers=layers,
            effects=effects,
            text=text,
            properties=_get(data, "properties", {}),
        )
    except ValidationError as e:
        raise MalformedSource(label, _describe_validation_error(e)) from e
    except (TypeError, ValueError, OverflowError) as e:
        raise MalformedSource(label, str(e)) from e


def decode_aep_json(source: TemplateSource) -> ProjectDescriptor:
    return parse_aep_json(source.text())


# ── Dispatch ────────────────────────────────────────────────────────────

DECODERS: dict[SourceFormat, Decoder] = {
    SourceFormat.MOTION: decode_motion,
    SourceFormat.FCP: decode_fcpxml,
    SourceFormat.AEP: decode_aep_json,
}

_unregistered = {fmt for _, fmt in EXTENSION_FORMATS} - DECODERS.keys()
if _unregistered:
    raise RuntimeError(f"No decoder registered for: {sorted(f.value for f in _unregistered)}")


def parse_template(source: TemplateSource) -> ProjectDescriptor:
    """Detect a template's format from its file name and decode it.

    Raises:
        UnsupportedFormat: the extension is not one of .motn, .fcp,
            .fcpxml or .aep.json.
        MalformedSource: the matching decoder rejected the content.
    """
    fmt = detect_format(source.name, source.content_type)
    logger.info(f"Decoding '{source.name}' as {FORMAT_LABELS[fmt]} ({source.size} bytes)")
    project = DECODERS[fmt](source)
    logger.info(
        f"Imported '{project.name}': {len(project.layers)} layers, "
        f"{len(project.effects)} effects, {project.duration:.2f}s"
    )
    return project
