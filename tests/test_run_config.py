"""
Tests for YAML run configuration files

Tests:
1. Loading plans and field configs
2. Error reporting for malformed documents
3. Templates seeded from discovery
"""

import pytest
import yaml

from formtasker_core.exceptions import ValidationError
from formtasker_core.mapping import discover
from formtasker_core.randomization import PatternSpec, RangeSpec
from formtasker_core.run_config import (
    RunConfig,
    configs_from_fields,
    load_run_config,
    parse_run_config,
    template_for,
)
from mocks import build_sample_form

RUN_YAML = """
url: "https://example.com/form"
plan:
  count: 20
  interval_min: 3
  interval_max: 8
  jitter: 0.2
  stop_on_error: true
fields:
  - field_id: "111"
    label: "Your name"
    mode: random
    spec: {type: regex, pattern: "user_\\\\d\\\\d"}
  - field_id: "222"
    mode: random
    probabilities: {Red: 50, Green: 30, Blue: 20}
  - field_id: "333"
    mode: random
    spec: {type: range, min: 1, max: 5}
  - field_id: "444"
    mode: random
    grid_probabilities:
      0: {Poor: 40, Good: 60}
  - field_id: "555"
    mode: random
    date_range: ["2024-01-01", "2024-12-31"]
  - field_id: "666"
    mode: fixed
"""


class TestLoadRunConfig:
    """Test loading YAML run configurations."""

    def test_load_file(self, tmp_path):
        path = tmp_path / "run.yaml"
        path.write_text(RUN_YAML, encoding="utf-8")

        run_config = load_run_config(path)

        assert run_config.url == "https://example.com/form"
        assert run_config.source_file == str(path)
        assert run_config.plan.count == 20
        assert run_config.plan.interval_min == 3
        assert run_config.plan.interval_max == 8
        assert run_config.plan.jitter == 0.2
        assert run_config.plan.stop_on_error is True

        by_id = {f.field_id: f for f in run_config.fields}
        assert by_id["111"].spec == PatternSpec(expression=r"user_\d\d")
        assert by_id["111"].label == "Your name"
        assert by_id["222"].probabilities == {"Red": 50, "Green": 30, "Blue": 20}
        assert by_id["333"].spec == RangeSpec(min=1, max=5)
        assert by_id["444"].grid_probabilities == {"0": {"Poor": 40, "Good": 60}}
        assert by_id["555"].date_range == ("2024-01-01", "2024-12-31")
        assert by_id["666"].is_random is False

    def test_plan_defaults(self):
        run_config = parse_run_config({"url": "u", "fields": []})
        assert run_config.plan.count == 1
        assert run_config.plan.stop_on_error is False
        assert run_config.plan.rate_limit == 0.0

    def test_yaml_round_trip(self):
        original = parse_run_config(yaml.safe_load(RUN_YAML))
        reloaded = parse_run_config(yaml.safe_load(original.to_yaml()))
        assert reloaded.plan == original.plan
        assert [f.to_dict() for f in reloaded.fields] == [f.to_dict() for f in original.fields]

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("fields: [unclosed", encoding="utf-8")
        with pytest.raises(ValidationError) as exc:
            load_run_config(path)
        assert "Invalid YAML" in exc.value.errors[0]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_run_config(tmp_path / "nope.yaml")

    def test_structural_errors_collected(self):
        data = {
            "fields": [
                "not a mapping",
                {"mode": "random"},
                {"field_id": "x", "mode": "random", "spec": {"type": "telepathy"}},
            ]
        }
        with pytest.raises(ValidationError) as exc:
            parse_run_config(data)
        assert len(exc.value.errors) == 3
        assert exc.value.errors[0].startswith("fields[0]")

    def test_top_level_must_be_mapping(self):
        with pytest.raises(ValidationError):
            parse_run_config(["url"])


class TestTemplates:
    """Test templates seeded from discovered fields."""

    def test_configs_from_fields(self):
        configs = configs_from_fields(discover(build_sample_form()))
        by_id = {c.field_id: c for c in configs}

        assert [c.field_id for c in configs] == ["111", "222", "333", "444", "555"]
        assert all(c.mode == "fixed" for c in configs)
        assert by_id["222"].probabilities == {"Red": 34, "Green": 33, "Blue": 33}
        assert by_id["333"].probabilities == {"1": 20, "2": 20, "3": 20, "4": 20, "5": 20}
        assert by_id["444"].grid_probabilities == {"0": {"Poor": 50, "Good": 50}, "1": {"Poor": 50, "Good": 50}}
        assert by_id["111"].label == "Your name"

    def test_template_yaml_loads_back(self):
        template = template_for("https://example.com/form", discover(build_sample_form()))
        reloaded = parse_run_config(yaml.safe_load(template.to_yaml()))
        assert isinstance(reloaded, RunConfig)
        assert reloaded.url == "https://example.com/form"
        assert len(reloaded.fields) == 5
