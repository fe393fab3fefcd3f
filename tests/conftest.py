"""Pytest configuration and fixtures."""

from datetime import timedelta

import pytest

from cardnet.config import Settings
from cardnet.graph import LayoutConfig
from cardnet.models import Card, CardCategory, Relationship
from cardnet.storage import InMemoryCardStore
from helpers import NOW, make_card, make_rel


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with defaults."""
    return Settings(
        neo4j_uri="bolt://localhost:7687",
        neo4j_user="neo4j",
        neo4j_password="test_password",
        layout_seed=1234,
    )


@pytest.fixture
def layout_config() -> LayoutConfig:
    return LayoutConfig(width=1200, height=900)


@pytest.fixture
def board_cards() -> list[Card]:
    """A small board touching every category."""
    return [
        make_card("q1", CardCategory.QUESTIONS, ["ux", "onboarding"], created_at=NOW),
        make_card("i1", CardCategory.INSIGHTS, ["ux", "onboarding"], created_at=NOW + timedelta(minutes=20)),
        make_card("i2", CardCategory.INSIGHTS, ["pricing"], created_at=NOW + timedelta(days=2)),
        make_card(
            "t1",
            CardCategory.THEMES,
            ["ux", "onboarding", "retention"],
            created_at=NOW + timedelta(days=3),
            metadata={"relatedInsightIds": ["i1"]},
        ),
        make_card("a1", CardCategory.ACTIONS, ["onboarding"], created_at=NOW + timedelta(days=4)),
        make_card("n1", CardCategory.INBOX, [], created_at=NOW + timedelta(days=5)),
    ]


@pytest.fixture
def board_relationships() -> list[Relationship]:
    return [
        make_rel("q1", "i1", 0.9),
        make_rel("i1", "t1", 0.8),
        make_rel("t1", "a1", 0.2),
    ]


@pytest.fixture
def store(board_cards, board_relationships) -> InMemoryCardStore:
    """In-memory store holding board 'b1'."""
    store = InMemoryCardStore()
    store.add_cards("b1", board_cards)
    store.add_relationships("b1", board_relationships)
    return store
