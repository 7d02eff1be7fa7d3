"""Tests for config loading."""

from fractions import Fraction

from scriptline.config import Config, load_config
from scriptline.models import Channel
from scriptline.timeline import TimelineBuilder


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_config(tmp_path / "nope.yaml")
        assert config == Config()
        assert config.timeline.se_duration == 0.5
        assert config.syntax.script_extension == ".ks"
        assert "system" in config.project.excluded_dirs

    def test_yaml_overrides(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "timeline:\n"
            "  se_duration: 1.25\n"
            "syntax:\n"
            "  speaker_prefix: '@@'\n"
        )
        config = load_config(path)
        assert config.timeline.se_duration == 1.25
        assert config.syntax.speaker_prefix == "@@"
        assert config.syntax.label_prefix == "*"

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(path) == Config()

    def test_builder_uses_se_duration(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("timeline:\n  se_duration: 1.25\n")
        builder = TimelineBuilder(config=load_config(path))
        timeline = builder.build([("a.ks", "[playse storage=a.ogg]")])
        (se,) = timeline.events_for(Channel.SE)
        assert se.end_time == Fraction(5, 4)
