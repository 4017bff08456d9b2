"""
Tests for the preset deck registry.
"""

import logging

from deckstate.presets import DEFAULT_REGISTRY, PresetDeck, PresetDeckRegistry


def test_built_in_presets():
    assert DEFAULT_REGISTRY.list_ids() == [
        "starter-deck",
        "court-cards",
        "ability-sampler",
    ]
    assert len(DEFAULT_REGISTRY.get("starter-deck").cards) == 20
    assert len(DEFAULT_REGISTRY.get("court-cards").cards) == 12
    assert len(DEFAULT_REGISTRY.get("ability-sampler").cards) == 15


def test_get_unknown_returns_none():
    assert DEFAULT_REGISTRY.get("missing-id") is None


def test_ids_unique():
    assert DEFAULT_REGISTRY.duplicate_ids() == []


def test_available_hides_invalid_templates(caplog):
    good = PresetDeck(id="good", name="Good", description="Fine", cards=("a",))
    bad = PresetDeck(id="Bad", name="", description="Broken", cards=())
    registry = PresetDeckRegistry([good, bad])

    with caplog.at_level(logging.WARNING, logger="deckstate.presets.decks"):
        available = registry.available()

    assert available == [good]
    assert "Hiding invalid preset deck 'Bad'" in caplog.text
    # Lookup still sees every template
    assert registry.get("Bad") is bad


def test_duplicate_ids_reported_once():
    deck = PresetDeck(id="same", name="Same", description="Twice", cards=("a",))
    registry = PresetDeckRegistry([deck, deck, deck])
    assert registry.duplicate_ids() == ["same"]
    assert len(registry) == 3


def test_to_dict():
    preset = DEFAULT_REGISTRY.get("court-cards")
    data = preset.to_dict()
    assert data["id"] == "court-cards"
    assert data["cards"][0] == "Jack of Spades"
    assert isinstance(data["cards"], list)
