"""Tests for editor_sdk.intake.decoders — FCP XML, Motion and AE JSON decoding."""

import json
from datetime import datetime, timezone

import pytest

from editor_sdk.core.project import LayerKind, SourceFormat
from editor_sdk.intake.decoders import (
    DECODERS,
    decode_motion,
    parse_aep_json,
    parse_fcpxml,
    parse_template,
)
from editor_sdk.intake.errors import MalformedSource, TemplateParseError, UnsupportedFormat
from editor_sdk.intake.sources import TemplateSource


FCP_XML = """<?xml version="1.0" encoding="UTF-8"?>
<fcpxml version="1.9">
  <project name="Promo Opener">
    <sequence duration="150" width="1280" height="720" framerate="25">
      <spine>
        <clip name="Intro" start="0" duration="60" offset="0s"/>
        <clip start="60" duration="90" retime="2x"/>
      </spine>
      <effect name="Blur" type="filter"/>
      <effect/>
    </sequence>
  </project>
</fcpxml>
"""


def _assert_valid(project):
    assert project.duration >= 0
    assert project.resolution.width > 0
    assert project.resolution.height > 0
    assert project.frame_rate > 0


# ── Final Cut Pro XML ──────────────────────────────────────────────────

class TestFcpXml:
    def test_sequence_metadata(self):
        p = parse_fcpxml(FCP_XML)
        assert p.name == "Promo Opener"
        assert p.source_format == SourceFormat.FCP
        assert p.duration == pytest.approx(5.0)
        assert p.resolution.width == 1280
        assert p.resolution.height == 720
        assert p.frame_rate == 25

    def test_frames_converted_at_30fps(self):
        p = parse_fcpxml('<project><sequence duration="150"/></project>')
        assert p.duration == pytest.approx(5.0)

    def test_clips_become_video_layers(self):
        p = parse_fcpxml(FCP_XML)
        assert [l.id for l in p.layers] == ["layer-0", "layer-1"]
        intro, second = p.layers
        assert intro.name == "Intro"
        assert intro.kind == LayerKind.VIDEO
        assert intro.duration == pytest.approx(2.0)
        assert intro.properties == {"offset": "0s"}
        assert second.name == "Clip 1"
        assert second.start_time == pytest.approx(2.0)
        assert second.duration == pytest.approx(3.0)
        assert second.properties == {"retime": "2x"}

    def test_effects_have_empty_parameters(self):
        p = parse_fcpxml(FCP_XML)
        assert [(e.name, e.type) for e in p.effects] == [("Blur", "filter"), ("Effect", "unknown")]
        assert all(e.parameters == {} for e in p.effects)

    def test_defaults_when_elements_missing(self):
        p = parse_fcpxml("<fcpxml/>")
        assert p.name == "Final Cut Pro Template"
        assert p.duration == 0.0
        assert p.resolution.width == 1920
        assert p.resolution.height == 1080
        assert p.frame_rate == 30
        assert p.layers == []
        _assert_valid(p)

    def test_zero_size_falls_back_to_defaults(self):
        p = parse_fcpxml('<sequence width="0" height="0" framerate="0"/>')
        assert p.resolution.width == 1920
        assert p.resolution.height == 1080
        assert p.frame_rate == 30

    def test_rational_seconds(self):
        p = parse_fcpxml('<sequence duration="3600/2400s"><clip duration="5s"/></sequence>')
        assert p.duration == pytest.approx(1.5)
        assert p.layers[0].duration == pytest.approx(5.0)

    def test_malformed_xml(self):
        with pytest.raises(MalformedSource, match="Final Cut Pro"):
            parse_fcpxml("<project><sequence></project>")

    def test_empty_document(self):
        with pytest.raises(MalformedSource):
            parse_fcpxml("")

    def test_non_numeric_attribute(self):
        with pytest.raises(MalformedSource):
            parse_fcpxml('<sequence duration="long"/>')

    def test_negative_duration_rejected(self):
        with pytest.raises(MalformedSource):
            parse_fcpxml('<sequence duration="-30"/>')

    @pytest.mark.parametrize("xml", [
        '<sequence width="1e999"/>',
        '<sequence framerate="inf"/>',
        '<sequence duration="1e999"/>',
        '<sequence duration="nan"/>',
        '<sequence><clip duration="1e999"/></sequence>',
        '<sequence duration="1/0s"/>',
    ])
    def test_non_finite_numbers_rejected(self, xml):
        with pytest.raises(MalformedSource):
            parse_fcpxml(xml)


# ── Apple Motion ───────────────────────────────────────────────────────

class TestMotion:
    def _source(self):
        return TemplateSource(
            name="Lower Third.motn",
            data=b"\x00\x01binary",
            last_modified=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
        )

    def test_stub_descriptor(self):
        p = decode_motion(self._source())
        assert p.name == "Lower Third"
        assert p.source_format == SourceFormat.MOTION
        assert p.duration == 5.0
        assert (p.resolution.width, p.resolution.height) == (1920, 1080)
        assert p.frame_rate == 30
        _assert_valid(p)

    def test_single_full_length_layer(self):
        p = decode_motion(self._source())
        assert len(p.layers) == 1
        layer = p.layers[0]
        assert layer.kind == LayerKind.VIDEO
        assert layer.start_time == 0
        assert layer.duration == p.duration
        assert layer.properties["source"] == "Lower Third.motn"

    def test_provenance_properties(self):
        p = decode_motion(self._source())
        assert p.properties["file_size"] == 8
        assert p.properties["last_modified"].startswith("2024-05-01T12:00:00")

    def test_uppercase_suffix_stripped(self):
        p = decode_motion(TemplateSource(name="TITLE.MOTN", data=b""))
        assert p.name == "TITLE"


# ── After Effects JSON ─────────────────────────────────────────────────

class TestAepJson:
    def test_empty_object_defaults(self):
        p = parse_aep_json("{}")
        assert p.name == "After Effects Template"
        assert p.source_format == SourceFormat.AEP
        assert p.duration == 10
        assert (p.resolution.width, p.resolution.height) == (1920, 1080)
        assert p.frame_rate == 30
        assert p.layers == []
        assert p.effects == []
        assert p.text == []
        assert p.properties == {}

    def test_full_document(self):
        doc = {
            "name": "Title Card",
            "duration": 4.5,
            "width": 1080,
            "height": 1920,
            "frameRate": 60,
            "properties": {"author": "studio"},
            "layers": [{"name": "BG", "type": "shape", "opacity": 0.5, "blendMode": "multiply"}],
            "effects": [{"name": "Glow", "type": "stylize", "parameters": {"radius": 12}}],
            "text": [{"content": "Hello", "fontSize": 48, "position": {"x": 10, "y": 20}}],
        }
        p = parse_aep_json(json.dumps(doc))
        assert p.name == "Title Card"
        assert p.duration == 4.5
        assert (p.resolution.width, p.resolution.height) == (1080, 1920)
        assert p.frame_rate == 60
        assert p.properties == {"author": "studio"}

        layer = p.layers[0]
        assert layer.kind == LayerKind.SHAPE
        assert layer.opacity == 0.5
        assert layer.blend_mode == "multiply"
        assert layer.duration == 5

        assert p.effects[0].parameters == {"radius": 12}

        text = p.text[0]
        assert text.content == "Hello"
        assert text.font_size == 48
        assert text.font_family == "Arial"
        assert text.color == "#ffffff"
        assert (text.position.x, text.position.y) == (10, 20)

    def test_element_defaults(self):
        p = parse_aep_json('{"layers": [{}], "effects": [{}], "text": [{}]}')
        layer = p.layers[0]
        assert layer.name == "Layer 0"
        assert layer.kind == LayerKind.VIDEO
        assert layer.opacity == 1.0
        assert layer.blend_mode == "normal"
        assert p.effects[0].name == "Effect"
        assert p.effects[0].type == "unknown"
        assert p.text[0].font_size == 24
        assert p.text[0].alignment == "left"

    def test_order_preserved(self):
        doc = {
            "layers": [{"name": n} for n in ["c", "a", "b"]],
            "effects": [{"name": n} for n in ["z", "x", "y"]],
            "text": [{"content": n} for n in ["3", "1", "2"]],
        }
        p = parse_aep_json(json.dumps(doc))
        assert [l.name for l in p.layers] == ["c", "a", "b"]
        assert [e.name for e in p.effects] == ["z", "x", "y"]
        assert [t.content for t in p.text] == ["3", "1", "2"]

    def test_zero_opacity_kept(self):
        p = parse_aep_json('{"layers": [{"opacity": 0}]}')
        assert p.layers[0].opacity == 0

    def test_non_positive_resolution_defaults(self):
        p = parse_aep_json('{"width": 0, "height": -5, "frameRate": 0}')
        assert (p.resolution.width, p.resolution.height) == (1920, 1080)
        assert p.frame_rate == 30

    def test_non_array_collections_ignored(self):
        p = parse_aep_json('{"layers": "nope", "effects": null}')
        assert p.layers == []
        assert p.effects == []

    def test_invalid_json(self):
        with pytest.raises(MalformedSource, match="After Effects"):
            parse_aep_json("{not json")

    def test_top_level_array_rejected(self):
        with pytest.raises(MalformedSource):
            parse_aep_json("[]")

    def test_unknown_layer_kind_rejected(self):
        with pytest.raises(MalformedSource):
            parse_aep_json('{"layers": [{"type": "hologram"}]}')

    def test_opacity_out_of_range_rejected(self):
        with pytest.raises(MalformedSource):
            parse_aep_json('{"layers": [{"opacity": 1.5}]}')

    def test_negative_duration_rejected(self):
        with pytest.raises(MalformedSource):
            parse_aep_json('{"duration": -1}')

    def test_non_object_layer_rejected(self):
        with pytest.raises(MalformedSource):
            parse_aep_json('{"layers": [3]}')

    @pytest.mark.parametrize("doc", [
        '{"width": 1e999}',
        '{"frameRate": Infinity}',
        '{"duration": Infinity}',
        '{"duration": NaN}',
        '{"layers": [{"startTime": 1e999}]}',
        '{"text": [{"fontSize": Infinity}]}',
    ])
    def test_non_finite_numbers_rejected(self, doc):
        with pytest.raises(MalformedSource):
            parse_aep_json(doc)

    def test_deeply_nested_json_rejected(self):
        doc = '{"properties": ' + "[" * 100000 + "]" * 100000 + "}"
        with pytest.raises(MalformedSource):
            parse_aep_json(doc)

    def test_fractional_font_size(self):
        p = parse_aep_json('{"text": [{"fontSize": 36.5}]}')
        assert p.text[0].font_size == 36.5


# ── Dispatch ───────────────────────────────────────────────────────────

class TestParseTemplate:
    def test_every_format_has_a_decoder(self):
        assert set(DECODERS) == {SourceFormat.MOTION, SourceFormat.FCP, SourceFormat.AEP}

    @pytest.mark.parametrize("name,expected", [
        ("promo.fcpxml", SourceFormat.FCP),
        ("PROMO.FCPXML", SourceFormat.FCP),
        ("legacy.fcp", SourceFormat.FCP),
        ("card.aep.json", SourceFormat.AEP),
        ("Card.AEP.JSON", SourceFormat.AEP),
        ("title.motn", SourceFormat.MOTION),
    ])
    def test_dispatch(self, name, expected):
        content = "{}" if expected == SourceFormat.AEP else "<project/>"
        p = parse_template(TemplateSource.from_text(name, content))
        assert p.source_format == expected
        _assert_valid(p)

    @pytest.mark.parametrize("name", ["template.psd", "project.json", "clip.xml", "noextension"])
    def test_unsupported_format(self, name):
        with pytest.raises(UnsupportedFormat) as exc_info:
            parse_template(TemplateSource.from_text(name, "{}"))
        assert isinstance(exc_info.value, TemplateParseError)

    def test_unsupported_message_names_extension(self):
        with pytest.raises(UnsupportedFormat, match=r"\.psd"):
            parse_template(TemplateSource(name="template.psd", data=b"",
                                          content_type="image/vnd.adobe.photoshop"))

    def test_invalid_utf8(self):
        with pytest.raises(MalformedSource):
            parse_template(TemplateSource(name="bad.fcpxml", data=b"\xff\xfe\xfa"))

    def test_from_path(self, tmp_path):
        path = tmp_path / "promo.fcpxml"
        path.write_text(FCP_XML)
        p = parse_template(TemplateSource.from_path(path))
        assert p.name == "Promo Opener"
        assert p.properties["source"] == "promo.fcpxml"
