"""
Tests for the Altair chart specs — survey/charts.py
"""
from conftest import make_record
from survey.charts import USAGE_LABELS, compute_charts, profession_distribution_chart, usage_reason_chart


def _mark_type(spec):
    mark = spec["mark"]
    return mark if isinstance(mark, str) else mark["type"]


def _values(spec):
    return list(spec["datasets"].values())[0]


class TestCharts:
    def test_compute_charts_keys(self, sample_records, config):
        charts = compute_charts(sample_records, config)
        assert set(charts) == {"profession_distribution", "usage_reasons"}

    def test_profession_chart_has_one_slice_per_profession(self, sample_records, config):
        spec = profession_distribution_chart(sample_records, config).to_dict()
        assert _mark_type(spec) == "arc"
        rows = _values(spec)
        assert [r["profession"] for r in rows] == list(config.professions)
        assert sum(r["count"] for r in rows) == 5

    def test_usage_chart_counts_exact_matches(self, sample_records, config):
        spec = usage_reason_chart(sample_records, config).to_dict()
        assert _mark_type(spec) == "bar"
        rows = _values(spec)
        assert [r["reason"] for r in rows] == list(USAGE_LABELS.values())
        assert [r["users"] for r in rows] == [1, 1, 1]

    def test_empty_collection(self, config):
        charts = compute_charts([], config)
        rows = _values(charts["usage_reasons"])
        assert all(r["users"] == 0 for r in rows)

    def test_ignores_unknown_reasons(self, config):
        spec = usage_reason_chart([make_record(1, "1", reason="other")], config).to_dict()
        assert sum(r["users"] for r in _values(spec)) == 0
