"""
Tests for job spec access and loading.
"""

import json
from unittest.mock import Mock, patch

import pytest
import requests

from bolt_step.exceptions import ConfigurationError
from bolt_step.job_spec import (
    ABSENT,
    JobSpec,
    fetch_job_spec,
    load_job_spec,
    read_job_spec,
)
from bolt_step.settings import Settings


class TestJobSpecGet:
    """Tests for key path lookups."""

    def test_get_nested_value(self):
        """Test resolving a nested key path."""
        spec = JobSpec({"project": {"connection": {"sshKey": "KEY"}}})

        assert spec.get("project.connection.sshKey") == "KEY"
        assert spec.get(".project.connection.sshKey") == "KEY"

    def test_get_missing_path_returns_absent(self):
        """Test that a missing key never raises."""
        spec = JobSpec({"project": {"type": "git"}})

        assert spec.get("project.version") is ABSENT
        assert spec.get("inventory") is ABSENT
        assert spec.get("project.type.nested") is ABSENT

    def test_present_empty_values_are_not_absent(self):
        """Test that null and empty string are distinguished from absence."""
        spec = JobSpec({"name": "", "parameters": None, "targets": []})

        assert spec.get("name") == ""
        assert spec.get("parameters") is None
        assert spec.get("targets") == []
        assert spec.get("type") is ABSENT

    def test_hyphenated_keys(self):
        """Test keys containing hyphens resolve like any other key."""
        spec = JobSpec({"transport": {"run-as": "admin"}})

        assert spec.get("transport.run-as") == "admin"

    def test_get_or_defaults_on_absent_and_null(self):
        """Test default applies to absent and null values only."""
        spec = JobSpec({"transport": {"username": None, "run-as": ""}})

        assert spec.get_or("transport.username", "root") == "root"
        assert spec.get_or("transport.password", "none") == "none"
        assert spec.get_or("transport.run-as", "root") == ""

    def test_require_raises_for_missing_or_empty(self):
        """Test require rejects absent and empty values."""
        spec = JobSpec({"name": ""})

        with pytest.raises(ConfigurationError, match="'name'"):
            spec.require("name")
        with pytest.raises(ConfigurationError, match="'type'"):
            spec.require("type")

    def test_returned_structures_do_not_mutate_spec(self):
        """Test the spec is read-only through returned values."""
        spec = JobSpec({"parameters": {"x": 1}})

        params = spec.get("parameters")
        params["x"] = 2

        assert spec.get("parameters") == {"x": 1}

    def test_absent_is_falsy_singleton(self):
        """Test the absent sentinel."""
        assert not ABSENT
        assert type(ABSENT)() is ABSENT
        assert repr(ABSENT) == "ABSENT"


class TestLoadJobSpec:
    """Tests for loading the job spec from a file or the metadata API."""

    def test_read_json_file(self, tmp_path):
        """Test reading a JSON job spec."""
        path = tmp_path / "spec.json"
        path.write_text(json.dumps({"type": "task", "name": "facts"}))

        spec = read_job_spec(path)

        assert spec.get("type") == "task"
        assert spec.get("name") == "facts"

    def test_read_yaml_file(self, tmp_path):
        """Test reading a YAML job spec."""
        path = tmp_path / "spec.yaml"
        path.write_text("type: plan\nname: deploy\ntargets:\n  - a\n  - b\n")

        spec = read_job_spec(path)

        assert spec.get("targets") == ["a", "b"]

    def test_read_empty_file(self, tmp_path):
        """Test an empty file is an empty spec."""
        path = tmp_path / "spec.yaml"
        path.write_text("")

        assert read_job_spec(path).get("type") is ABSENT

    def test_read_non_object_raises(self, tmp_path):
        """Test a spec that is not an object is rejected."""
        path = tmp_path / "spec.json"
        path.write_text("[1, 2]")

        with pytest.raises(ConfigurationError, match="expected an object"):
            read_job_spec(path)

    @patch("bolt_step.job_spec.requests.get")
    def test_fetch_from_metadata_api(self, mock_get):
        """Test fetching the spec from the metadata API."""
        mock_response = Mock()
        mock_response.json.return_value = {"type": "apply", "name": "profile::base"}
        mock_response.raise_for_status.return_value = None
        mock_get.return_value = mock_response

        spec = fetch_job_spec("http://metadata.test/", timeout=10)

        mock_get.assert_called_once_with(
            "http://metadata.test/spec",
            headers={"Accept": "application/json"},
            timeout=10,
        )
        assert spec.get("name") == "profile::base"

    @patch("bolt_step.job_spec.requests.get")
    def test_fetch_http_error(self, mock_get):
        """Test HTTP errors propagate."""
        mock_response = Mock()
        mock_response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            "500 Server Error"
        )
        mock_get.return_value = mock_response

        with pytest.raises(requests.exceptions.HTTPError):
            fetch_job_spec("http://metadata.test")

    @patch("bolt_step.job_spec.fetch_job_spec")
    def test_load_prefers_spec_file(self, mock_fetch, tmp_path):
        """Test SPEC_FILE wins over the metadata API."""
        path = tmp_path / "spec.json"
        path.write_text('{"name": "from-file"}')
        settings = Settings(
            workdir=tmp_path, spec_file=path, metadata_api_url="http://metadata.test"
        )

        spec = load_job_spec(settings)

        assert spec.get("name") == "from-file"
        mock_fetch.assert_not_called()

    @patch("bolt_step.job_spec.fetch_job_spec")
    def test_load_from_metadata_api(self, mock_fetch, tmp_path):
        """Test the metadata API is used without a spec file."""
        mock_fetch.return_value = JobSpec({"name": "from-api"})
        settings = Settings(
            workdir=tmp_path, metadata_api_url="http://metadata.test", download_timeout=5
        )

        spec = load_job_spec(settings)

        assert spec.get("name") == "from-api"
        mock_fetch.assert_called_once_with("http://metadata.test", timeout=5)
