"""Tests for the command decoder — tag scanning and parameter parsing."""

from scriptline.decoder import TextSegment, decode_line, parse_parameters, strip_block_comments
from scriptline.models import Command


class TestParseParameters:
    def test_quoted_and_unquoted(self):
        params = parse_parameters('bg storage="room.png" time=500')
        assert params == {"storage": "room.png", "time": "500"}

    def test_single_quotes_keep_spaces(self):
        assert parse_parameters("glink text='Go left now'") == {"text": "Go left now"}

    def test_later_duplicate_overwrites(self):
        assert parse_parameters("image layer=1 layer=2") == {"layer": "2"}

    def test_whitespace_around_equals(self):
        assert parse_parameters('bg storage = "a.png"') == {"storage": "a.png"}

    def test_equals_inside_quoted_value(self):
        params = parse_parameters('if exp="f.a==1" name=x')
        assert params == {"exp": "f.a==1", "name": "x"}

    def test_unterminated_quote_falls_back_to_unquoted(self):
        assert parse_parameters('bg storage="room.png') == {"storage": '"room.png'}

    def test_empty_quoted_value(self):
        assert parse_parameters('chara_show name=""') == {"name": ""}

    def test_key_without_value_is_ignored(self):
        assert parse_parameters("p cond=") == {}

    def test_bare_words_are_not_parameters(self):
        assert parse_parameters("chara_hide_all") == {}


class TestDecodeLine:
    def test_text_and_tags_in_order(self):
        decoded = decode_line("Hello[r]World[p]", 7)
        tokens = list(decoded.tokens())
        assert tokens[0] == TextSegment("Hello")
        assert isinstance(tokens[1], Command) and tokens[1].name == "r"
        assert tokens[2] == TextSegment("World")
        assert isinstance(tokens[3], Command) and tokens[3].name == "p"
        assert [c.source_line for c in decoded] == [7, 7]

    def test_texts_and_commands(self):
        decoded = decode_line('before[bg storage="a.png"]between[p]after')
        assert [c.name for c in decoded.commands] == ["bg", "p"]
        assert decoded.texts == ["before", "between", "after"]

    def test_sequence_is_restartable(self):
        decoded = decode_line("[cm][bg storage=a.png][p]")
        first = [c.name for c in decoded]
        second = [c.name for c in decoded]
        assert first == second == ["cm", "bg", "p"]

    def test_name_is_lowercased(self):
        (command,) = decode_line("[BG storage=a.png]").commands
        assert command.name == "bg"
        assert command.parameters == {"storage": "a.png"}

    def test_unterminated_bracket_is_text(self):
        decoded = decode_line("text [bg storage=a.png")
        assert decoded.commands == []
        assert decoded.texts == ["text [bg storage=a.png"]

    def test_empty_brackets_are_text(self):
        decoded = decode_line("a[]b")
        assert decoded.commands == []
        assert decoded.texts == ["a[]b"]

    def test_at_command(self):
        decoded = decode_line("@jump storage=next.ks target=*start", 3)
        assert decoded.is_at_command
        (command,) = decoded.commands
        assert command.name == "jump"
        assert command.parameters == {"storage": "next.ks", "target": "*start"}
        assert command.source_line == 3
        assert decoded.texts == []

    def test_at_command_with_leading_whitespace(self):
        (command,) = decode_line("   @p").commands
        assert command.name == "p"

    def test_plain_text(self):
        decoded = decode_line("Just narration.")
        assert decoded.commands == []
        assert decoded.texts == ["Just narration."]


class TestStripBlockComments:
    def test_keeps_line_numbers(self):
        content = "a\n/*\nx\ny\n*/\nb"
        stripped = strip_block_comments(content)
        lines = stripped.split("\n")
        assert lines[0] == "a"
        assert lines[5] == "b"
        assert "x" not in stripped

    def test_inline_comment(self):
        assert strip_block_comments("a/* hidden */b") == "ab"

    def test_unterminated_comment_left_alone(self):
        assert strip_block_comments("a /* open") == "a /* open"
