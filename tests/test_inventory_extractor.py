"""Tests for the per-file inventory extractor."""

import pytest

from scriptline.extractors.inventory_extractor import InventoryExtractor, extract_inventory

SCRIPT = """\
*start
[bg storage="room.png"]
#Alice:smile
Hello there.[p]
; [jump storage=hidden.ks]
[if exp="f.flag==1"]
[jump storage="chapter2.ks" target="*top" cond="f.ok"]
[elsif exp="f.flag==2"]
@jump storage=chapter3.ks
[endif]
[glink text="Go left" storage="left.ks" target="*a"]
[link storage="right.ks" target="*b"]
[button graphic="btn.png" target="*c"]
[call storage="sub.ks" target="*sub"]
[image storage="fg.png" layer=2]
[chara_new name=akane storage="akane.png"]
[chara_show name=akane face=happy]
[chara_face name=akane face=happy storage="akane_happy.png"]
[video storage="v.mp4"]
[movie storage="op.mp4"]
[playbgm storage="theme.ogg"]
[playse storage="click.ogg"]
[fadeinse]
#
Narration[l]continues[p]
/*
*commented_label
*/
"""


@pytest.fixture()
def inventory():
    return extract_inventory(SCRIPT, "prologue.ks")


class TestInventoryExtractor:
    def test_labels(self, inventory):
        assert [(l.name, l.line) for l in inventory.labels] == [("start", 1)]

    def test_jumps_skip_comments(self, inventory):
        assert [(j.storage, j.target, j.cond) for j in inventory.jumps] == [
            ("chapter2.ks", "*top", "f.ok"),
            ("chapter3.ks", None, None),
        ]
        assert inventory.jumps[1].line == 9

    def test_branches(self, inventory):
        assert [(b.type, b.exp) for b in inventory.branches] == [
            ("if", "f.flag==1"), ("elsif", "f.flag==2"),
        ]

    def test_links(self, inventory):
        glink, link, button = inventory.links
        assert (glink.type, glink.text, glink.storage, glink.target) == ("glink", "Go left", "left.ks", "*a")
        assert (link.type, link.storage) == ("link", "right.ks")
        assert (button.type, button.graphic, button.target) == ("button", "btn.png", "*c")

    def test_calls(self, inventory):
        assert [(c.storage, c.target) for c in inventory.calls] == [("sub.ks", "*sub")]

    def test_images(self, inventory):
        assert [(i.type, i.storage, i.folder) for i in inventory.images] == [
            ("bg", "room.png", "bgimage"),
            ("image", "fg.png", "fgimage"),
            ("chara_new", "akane.png", "fgimage"),
            ("chara_show", None, "fgimage"),
            ("chara_face", "akane_happy.png", "fgimage"),
        ]
        assert inventory.images[1].layer == "2"
        assert inventory.images[3].face == "happy"

    def test_videos_and_audio(self, inventory):
        assert [(v.type, v.storage) for v in inventory.videos] == [("video", "v.mp4"), ("movie", "op.mp4")]
        assert [(a.type, a.tag, a.folder) for a in inventory.audio] == [
            ("bgm", "playbgm", "bgm"), ("se", "playse", "sound"),
        ]
        assert inventory.bgm_count == 1
        assert inventory.se_count == 1

    def test_click_count(self, inventory):
        assert inventory.click_count == 3

    def test_dialogues(self, inventory):
        alice, narration = inventory.dialogues
        assert (alice.speaker, alice.text, alice.line) == ("Alice", "Hello there.", 4)
        assert narration.speaker is None
        assert narration.text == "Narrationcontinues"
        assert narration.line == 25

    def test_malformed_markup_does_not_raise(self):
        inventory = InventoryExtractor().extract("[bg storage=\n[[[\n@\n#", "broken.ks")
        assert inventory.filename == "broken.ks"
        assert inventory.images == []
