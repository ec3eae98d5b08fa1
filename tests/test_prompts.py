"""Tests for prompts module."""

import pytest
from mcp.shared.exceptions import McpError
from mcp.types import INVALID_REQUEST

from firewalla_msp_mcp.prompts import FORMAT_GUIDES, PROMPTS, get_format_guide


class TestFormatGuides:
    """Tests for the formatting-guide prompts."""

    def test_eight_guides(self):
        assert [prompt.name for prompt in PROMPTS] == [
            "format_devices",
            "format_alarms",
            "format_flows",
            "format_rules",
            "format_boxes",
            "format_statistics",
            "format_target_lists",
            "format_search_results",
        ]
        assert all(prompt.description for prompt in PROMPTS)

    @pytest.mark.parametrize("name", sorted(FORMAT_GUIDES))
    def test_get_returns_single_user_message(self, name):
        result = get_format_guide(name)
        assert result.description == FORMAT_GUIDES[name].detail
        assert len(result.messages) == 1
        assert result.messages[0].role == "user"
        assert result.messages[0].content.text == FORMAT_GUIDES[name].text

    def test_unknown_prompt(self):
        with pytest.raises(McpError) as exc_info:
            get_format_guide("format_weather")
        assert exc_info.value.error.code == INVALID_REQUEST
        assert exc_info.value.error.message == "Unknown prompt: format_weather"
