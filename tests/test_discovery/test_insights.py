"""Tests for generated book insights."""

import json

import pytest

from schoollib.discovery.insights import (
    LITERARY_INSTRUCTION,
    BookInsights,
    BookRef,
    RelatedBook,
    parse_json_list,
    split_lines,
)


@pytest.fixture
def book():
    return BookRef(title="Dune", author="Frank Herbert", about="A desert planet.")


@pytest.fixture
def insights(gateway):
    return BookInsights(gateway)


class TestParsing:
    """Tests for structured-reply parsing."""

    def test_parse_json_list(self):
        assert parse_json_list('["a", "b"]', str) == ["a", "b"]

    def test_parse_fenced_json(self):
        text = '```json\n[{"title": "Emma", "author": "Jane Austen"}]\n```'

        assert parse_json_list(text, RelatedBook) == [RelatedBook(title="Emma", author="Jane Austen")]

    def test_parse_not_json(self):
        assert parse_json_list("Here are some quotes", str) is None

    def test_parse_wrong_shape(self):
        assert parse_json_list('{"title": "Emma"}', RelatedBook) is None

    def test_split_lines(self):
        assert split_lines("one\n\n  two  \n") == ["one", "two"]


class TestBookInsights:
    """Tests for the per-book tabs."""

    def test_about_uses_stored_description(self, insights, gateway, book):
        """Test the about tab makes no remote call."""
        assert insights.about(book) == "A desert planet."
        gateway.generate_text.assert_not_called()

    def test_about_without_description(self, insights):
        assert insights.about(BookRef("Dune", "Frank Herbert")) == "No information available for this book."

    def test_conversation(self, insights, gateway, book):
        gateway.generate_text.return_value = "  - Paul: ...\n"

        assert insights.conversation(book) == "- Paul: ..."
        instruction, prompt = gateway.generate_text.call_args.args
        assert instruction == LITERARY_INSTRUCTION
        assert '"Dune" by Frank Herbert' in prompt

    def test_critique_empty_reply(self, insights, gateway, book):
        gateway.generate_text.return_value = "   "

        assert insights.critique(book) == "No content available."

    def test_quotes_structured(self, insights, gateway, book):
        gateway.generate_text.return_value = json.dumps(["Fear is the mind-killer.", " "])

        assert insights.quotes(book) == ["Fear is the mind-killer."]

    def test_quotes_line_fallback(self, insights, gateway, book):
        """Test unstructured replies are split into lines."""
        gateway.generate_text.return_value = '"Fear is the mind-killer." - Paul\n\n"Walk without rhythm." - Stilgar'

        quotes = insights.quotes(book)

        assert len(quotes) == 2
        assert quotes[1].startswith('"Walk without rhythm."')

    def test_quotes_count_in_prompt(self, insights, gateway, book):
        gateway.generate_text.return_value = "[]"

        insights.quotes(book, count=4)

        assert "List 4 " in gateway.generate_text.call_args.args[1]

    def test_related_structured(self, insights, gateway, book):
        gateway.generate_text.return_value = json.dumps([
            {"title": "Hyperion", "author": "Dan Simmons", "description": "Pilgrims."},
        ])

        assert insights.related_books(book) == [
            RelatedBook(title="Hyperion", author="Dan Simmons", description="Pilgrims.")
        ]

    def test_related_line_fallback(self, insights, gateway, book):
        """Test 'Title - Author, Description' lines are parsed."""
        gateway.generate_text.return_value = (
            "1. Hyperion - Dan Simmons, Pilgrims on a far world.\n"
            "Foundation"
        )

        related = insights.related_books(book)

        assert related[0] == RelatedBook(
            title="Hyperion", author="Dan Simmons", description="Pilgrims on a far world."
        )
        assert related[1] == RelatedBook(title="Foundation")
