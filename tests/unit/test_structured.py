"""Tests for structured output parsing."""

import pytest
from pydantic import BaseModel, ValidationError

from smart_agent.structured import (
    extract_json,
    output_json_schema,
    parse_structured_output,
    validate_output,
)


class Answer(BaseModel):
    city: str
    population: int


class TestExtractJson:
    def test_plain_json(self):
        assert extract_json('{"a": 1}') == {"a": 1}

    def test_fenced_block(self):
        text = 'Here you go:\n```json\n{"a": 2}\n```\nThanks'
        assert extract_json(text) == {"a": 2}

    def test_embedded_object(self):
        assert extract_json('The answer is {"a": 3} as requested.') == {"a": 3}

    def test_array(self):
        assert extract_json("values: [1, 2, 3]") == [1, 2, 3]

    def test_no_json_raises(self):
        with pytest.raises(ValueError):
            extract_json("no json here")


class TestValidateOutput:
    def test_model_is_dumped(self):
        assert validate_output(Answer, {"city": "Paris", "population": 2}) == {
            "city": "Paris",
            "population": 2,
        }

    def test_plain_type(self):
        assert validate_output(list[int], ["1", 2]) == [1, 2]

    def test_invalid_raises(self):
        with pytest.raises(ValidationError):
            validate_output(Answer, {"city": "Paris"})

    def test_json_schema(self):
        assert output_json_schema(Answer)["type"] == "object"
        assert output_json_schema(list[int])["type"] == "array"


class TestParseStructuredOutput:
    def test_conforming_text(self):
        text = '{"city": "Paris", "population": 2100000}'
        assert parse_structured_output(Answer, text) == {"city": "Paris", "population": 2100000}

    def test_non_conforming_returns_none(self):
        assert parse_structured_output(Answer, '{"city": "Paris"}') is None
        assert parse_structured_output(Answer, "Paris, about two million") is None
