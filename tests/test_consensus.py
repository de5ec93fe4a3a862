"""Tests for cross-provider competitor consensus."""

from brandpulse.analysis.consensus import cross_provider_consensus


class TestCrossProviderConsensus:
    def test_agreed_by_two_providers(self):
        observations = [
            ("openai", ["Salesforce", "Zoho"]),
            ("perplexity", ["salesforce", "Pipedrive"]),
            ("gemini", ["Zendesk"]),
        ]
        items = cross_provider_consensus(observations)
        assert [i.name for i in items] == ["Salesforce"]
        assert items[0].providers == ["openai", "perplexity"]
        assert items[0].provider_count == 2

    def test_same_provider_counts_once(self):
        observations = [("openai", ["Zoho"]), ("openai", ["Zoho"]), ("openai", ["Zoho"])]
        assert cross_provider_consensus(observations) == []

    def test_ratio_raises_requirement(self):
        observations = [
            ("openai", ["Zoho", "Salesforce"]),
            ("perplexity", ["Zoho", "Salesforce"]),
            ("gemini", ["Zoho"]),
            ("openai", []),
            ("perplexity", []),
            ("gemini", []),
        ]
        # required = max(2, ceil(0.5 * 6)) = 3
        items = cross_provider_consensus(observations, min_ratio=0.5)
        assert [i.name for i in items] == ["Zoho"]

    def test_sorted_by_agreement_then_name(self):
        observations = [
            ("openai", ["Zoho", "Asana"]),
            ("perplexity", ["Zoho", "Asana"]),
            ("gemini", ["Zoho"]),
        ]
        items = cross_provider_consensus(observations, min_ratio=0.0)
        assert [i.name for i in items] == ["Zoho", "Asana"]

    def test_empty(self):
        assert cross_provider_consensus([]) == []
