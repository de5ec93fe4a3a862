"""Tests for brand name extraction (embedded JSON, pattern fallback)."""

from brandpulse.analysis.extractor import (
    Fallback,
    Ok,
    extract,
    extract_by_pattern,
    parse_embedded_brands,
    strip_embedded_json,
)


class TestParseEmbeddedBrands:
    def test_valid_object(self):
        text = 'HubSpot is great.\n\n{"brands": ["HubSpot", "Salesforce"]}'
        assert parse_embedded_brands(text) == Ok(["HubSpot", "Salesforce"])

    def test_code_fenced_object(self):
        text = 'Answer.\n```json\n{"brands": ["Pipedrive"]}\n```'
        assert parse_embedded_brands(text) == Ok(["Pipedrive"])

    def test_last_object_wins(self):
        text = 'Example: {"brands": ["Old"]}\nReal: {"brands": ["Zoho", "Freshsales"]}'
        assert parse_embedded_brands(text) == Ok(["Zoho", "Freshsales"])

    def test_empty_list_is_ok(self):
        assert parse_embedded_brands('No brands here. {"brands": []}') == Ok([])

    def test_dedupes_case_insensitively_and_drops_non_strings(self):
        text = '{"brands": ["Slack", "slack", " ", 42, "Notion"]}'
        assert parse_embedded_brands(text) == Ok(["Slack", "Notion"])

    def test_only_unusable_entries(self):
        assert parse_embedded_brands('{"brands": ["  ", 7, null]}') == Fallback("empty_brands")

    def test_empty_text(self):
        assert parse_embedded_brands("   ") == Fallback("empty_text")

    def test_no_json(self):
        assert parse_embedded_brands("HubSpot and Salesforce are popular.") == Fallback("no_json")

    def test_malformed_json(self):
        assert parse_embedded_brands('{"brands": ["HubSpot",]}') == Fallback("malformed_json")

    def test_brands_not_a_list(self):
        assert parse_embedded_brands('{"brands": "HubSpot"}') == Fallback("missing_brands")


class TestStripEmbeddedJson:
    def test_removes_object_and_fence(self):
        text = 'Use HubSpot.\n```json\n{"brands": ["HubSpot"]}\n```'
        assert strip_embedded_json(text) == "Use HubSpot."

    def test_plain_text_untouched(self):
        assert strip_embedded_json("  Use HubSpot.  ") == "Use HubSpot."

    def test_empty(self):
        assert strip_embedded_json("") == ""


class TestExtractByPattern:
    def test_single_words_in_order(self):
        assert extract_by_pattern("I recommend HubSpot and Salesforce for this.") == ["HubSpot", "Salesforce"]

    def test_two_word_names_come_before_their_parts(self):
        names = extract_by_pattern("We like Zoho CRM today.")
        assert names[0] == "Zoho CRM"
        assert "Zoho" in names

    def test_common_words_skipped(self):
        names = extract_by_pattern("The best option is Pipedrive. However, Monday is also fine.")
        assert "The" not in names
        assert "However" not in names
        assert "Pipedrive" in names

    def test_short_capitalized_words_ignored(self):
        assert extract_by_pattern("I am OK with it.") == []

    def test_no_capitals(self):
        assert extract_by_pattern("there are many good tools for this job.") == []


class TestExtract:
    def test_json_branch(self):
        result = extract('Text.\n{"brands": ["Intercom"]}')
        assert result.names == ["Intercom"]
        assert result.method == "json"
        assert result.fallback_reason is None

    def test_pattern_branch_records_reason(self):
        result = extract("Intercom and Zendesk both work.")
        assert result.method == "pattern"
        assert result.fallback_reason == "no_json"
        assert result.names == ["Intercom", "Zendesk"]

    def test_malformed_json_does_not_leak_into_patterns(self):
        result = extract('Intercom is good. {"brands": ["Intercom",]}')
        assert result.fallback_reason == "malformed_json"
        assert result.names == ["Intercom"]

    def test_empty_answer(self):
        result = extract("")
        assert result.names == []
        assert result.fallback_reason == "empty_text"

    def test_answer_without_brands(self):
        result = extract("there is no single right answer here.")
        assert result.names == []
