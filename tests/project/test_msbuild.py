"""
Tests for MSBuild property extraction.
"""

from pathlib import Path

import pytest
from unittest.mock import MagicMock

from roslynkit.project.msbuild import (
    _sanitize,
    bare_token,
    extract_properties,
    following_token,
    json_properties,
    msbuild_command,
    msbuild_get_properties,
    parse_property_output,
    separator_value,
    whole_line,
)

JSON_OUTPUT = """{
  "Properties": {
    "IsTestProject": "",
    "OutputType": "Exe",
    "Optimize": true
  }
}"""


class TestParsePropertyOutput:
    @pytest.mark.parametrize(
        "output",
        [
            "OutputType = Exe\n",
            "OutputType: Exe\n",
            "Exe\n",
            "   Exe   \n",
            '{"Properties": {"OutputType": "Exe"}}',
            '  "OutputType": "Exe",\n',
            "OutputType Exe\n",
        ],
    )
    def test_formats(self, output):
        assert parse_property_output(output, "OutputType") == "Exe"

    def test_case_insensitive_name(self):
        assert parse_property_output("Property OutputType: Exe\n", "outputtype") == "Exe"

    def test_absent(self):
        assert parse_property_output("Some noise\n", "OutputType") is None

    def test_empty_output(self):
        assert parse_property_output("", "OutputType") is None
        assert parse_property_output("\n  \n", "OutputType") is None

    def test_json_empty_value(self):
        assert parse_property_output(JSON_OUTPUT, "IsTestProject") == ""

    def test_json_non_string_value(self):
        assert parse_property_output(JSON_OUTPUT, "Optimize") == "true"

    def test_json_without_property_falls_back_to_lines(self):
        # The name is not in Properties and no line mentions it
        assert parse_property_output(JSON_OUTPUT, "TargetFramework") is None

    def test_is_test_project(self):
        assert parse_property_output("IsTestProject = true\n", "IsTestProject") == "true"

    def test_first_matching_line_wins(self):
        output = "warning: OutputType ignored\nOutputType = Exe\n"
        assert parse_property_output(output, "OutputType") == "OutputType ignored"

    def test_name_alone_on_line(self):
        assert parse_property_output("OutputType\n", "OutputType") == "OutputType"


class TestStrategies:
    """Each parser in isolation."""

    def test_json_properties_ignores_text(self):
        assert json_properties("OutputType = Exe", "OutputType") is None
        assert json_properties('{"Other": {}}', "OutputType") is None
        assert json_properties("[1, 2]", "OutputType") is None

    def test_json_structured_value_is_compact(self):
        output = '{"Properties": {"Items": {"a": 1, "b": [true, null]}, "Names": ["é"]}}'

        assert json_properties(output, "Items") == '{"a":1,"b":[true,null]}'
        assert json_properties(output, "Names") == '["é"]'

    def test_separator_prefers_equals(self):
        assert separator_value("Url = http://x", "Url") == "http://x"

    def test_separator_without_separator(self):
        assert separator_value("OutputType Exe", "OutputType") is None

    def test_following_token_at_end_of_line(self):
        assert following_token("Value OutputType", "OutputType") is None

    def test_whole_line(self):
        assert whole_line('  "OutputType"  ', "OutputType") == "OutputType"
        assert whole_line("noise", "OutputType") is None

    def test_bare_token(self):
        assert bare_token("Exe", "OutputType") == "Exe"
        assert bare_token("Exe\nLibrary", "OutputType") is None
        assert bare_token("Exe Library", "OutputType") is None
        assert bare_token("OutputType", "OutputType") is None


class TestSanitize:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            (' "Exe",', "Exe"),
            ('"",', ""),
            ("Exe}", "Exe"),
            ("Exe ] } ,", "Exe"),
            ('""Exe""', '"Exe"'),
            ('"', '"'),
            ("  plain  ", "plain"),
        ],
    )
    def test_values(self, raw, expected):
        assert _sanitize(raw) == expected


def test_extract_properties_omits_unknown():
    assert extract_properties("OutputType = Exe\n", ["OutputType", "IsTestProject"]) == {
        "OutputType": "Exe"
    }


def test_extract_properties_from_json():
    assert extract_properties(JSON_OUTPUT, ["OutputType", "IsTestProject", "Missing"]) == {
        "OutputType": "Exe",
        "IsTestProject": "",
    }


class TestMsbuildGetProperties:
    def test_command(self):
        assert msbuild_command(Path("/src/App.csproj"), ["OutputType", "IsTestProject"]) == [
            "dotnet",
            "msbuild",
            str(Path("/src/App.csproj")),
            "/nologo",
            "/v:q",
            "/getProperty:OutputType",
            "/getProperty:IsTestProject",
        ]

    def test_parses_combined_output(self, completed):
        runner = MagicMock(return_value=completed(0, JSON_OUTPUT, ""))

        result = msbuild_get_properties(
            Path("/src/App.csproj"), ["OutputType", "IsTestProject"], runner=runner
        )

        assert result == {"OutputType": "Exe", "IsTestProject": ""}
        assert runner.call_count == 1
        assert runner.call_args.args[0][0] == "dotnet"

    def test_reads_stderr(self, completed):
        runner = MagicMock(return_value=completed(1, "", "OutputType: WinExe\n"))

        result = msbuild_get_properties(Path("App.csproj"), ["OutputType"], runner=runner)

        assert result == {"OutputType": "WinExe"}

    def test_launch_failure_returns_empty(self):
        runner = MagicMock(side_effect=FileNotFoundError("dotnet"))

        assert msbuild_get_properties(Path("App.csproj"), ["OutputType"], runner=runner) == {}

    def test_custom_dotnet(self, completed):
        runner = MagicMock(return_value=completed(0, "Exe"))

        msbuild_get_properties(
            Path("App.csproj"), ["OutputType"], dotnet="/opt/dotnet/dotnet", runner=runner
        )

        assert runner.call_args.args[0][0] == "/opt/dotnet/dotnet"
