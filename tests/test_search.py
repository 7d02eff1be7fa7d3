"""Tests for cross-file search."""

import pytest

from scriptline.extractors.inventory_extractor import extract_inventory
from scriptline.output.search import search_inventories


@pytest.fixture()
def inventories():
    return {
        "prologue.ks": extract_inventory(
            "*start\n#Alice\nWhere is the station?[p]\n"
            '[jump storage="chapter2.ks" target="*platform"]\n',
            "prologue.ks",
        ),
        "chapter2.ks": extract_inventory(
            '*platform\n[glink text="Take the Train" storage="ending.ks"]\n#Bob\nHello Alice.[p]\n',
            "chapter2.ks",
        ),
    }


class TestSearchInventories:
    def test_dialogue_by_speaker_and_text(self, inventories):
        hits = search_inventories(inventories, "ALICE")
        assert [(h.filename, h.kind, h.speaker) for h in hits] == [
            ("prologue.ks", "dialogue", "Alice"),
            ("chapter2.ks", "dialogue", "Bob"),
        ]
        assert hits[0].line == 3

    def test_labels_and_jumps(self, inventories):
        hits = search_inventories(inventories, "platform")
        kinds = [(h.filename, h.kind) for h in hits]
        assert ("prologue.ks", "jump") in kinds
        assert ("chapter2.ks", "label") in kinds
        label = next(h for h in hits if h.kind == "label")
        assert label.text == "*platform"

    def test_links(self, inventories):
        (hit,) = search_inventories(inventories, "train")
        assert hit.kind == "link"
        assert hit.text == "[glink] Take the Train -> ending.ks"

    def test_blank_query(self, inventories):
        assert search_inventories(inventories, "   ") == []

    def test_no_match(self, inventories):
        assert search_inventories(inventories, "zebra") == []
