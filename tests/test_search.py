"""Tests for search module."""

import httpx
import pytest

from firewalla_msp_mcp.search import EntitySearchResult, SEARCHABLE_TYPES, search_entities


class TestEntitySearchResult:
    """Tests for EntitySearchResult conversions."""

    def test_paged_payload(self):
        result = EntitySearchResult.from_payload("devices", {"results": [1, 2], "count": 5, "next_cursor": "n"})
        assert result.to_dict() == {"results": [1, 2], "count": 5, "next_cursor": "n"}

    def test_list_payload(self):
        result = EntitySearchResult.from_payload("boxes", [{"gid": "a"}])
        assert result.to_dict() == {"results": [{"gid": "a"}], "count": 1}

    def test_object_payload_is_wrapped(self):
        result = EntitySearchResult.from_payload("boxes", {"gid": "a"})
        assert result.to_dict() == {"results": [{"gid": "a"}], "count": 1}

    def test_failed(self):
        result = EntitySearchResult.failed("flows", "timeout")
        assert not result.ok
        assert result.to_dict() == {"error": "Failed to search flows: timeout"}


class TestSearchEntities:
    """Tests for search_entities function."""

    @pytest.mark.asyncio
    async def test_partial_failure(self, mock_client):
        """A failing entity type must not affect the others or the total."""
        async def fake_get(path, params=None):
            if path == "/devices":
                raise httpx.ConnectError("connection refused")
            return {"results": [{"aid": "1"}], "count": 1}

        mock_client.get.side_effect = fake_get
        result = await search_entities(mock_client, "laptop", ["devices", "alarms"])

        assert result["query"] == "laptop"
        assert set(result["results"]) == {"devices", "alarms"}
        assert result["results"]["devices"]["error"].startswith("Failed to search devices")
        assert result["results"]["alarms"]["results"] == [{"aid": "1"}]
        assert result["total_count"] == 1

    @pytest.mark.asyncio
    async def test_defaults_to_all_searchable_types(self, mock_client):
        mock_client.get.return_value = {"results": [], "count": 0}
        result = await search_entities(mock_client, "x")

        assert list(result["results"]) == list(SEARCHABLE_TYPES)
        paths = sorted(call.args[0] for call in mock_client.get.call_args_list)
        assert paths == ["/alarms", "/boxes", "/devices", "/flows"]

    @pytest.mark.asyncio
    async def test_sends_query_limit_and_cursor(self, mock_client):
        mock_client.get.return_value = []
        await search_entities(mock_client, "status:active", ["alarms"], limit=25, cursor="abc")

        mock_client.get.assert_called_once_with(
            "/alarms", params={"query": "status:active", "limit": 25, "cursor": "abc"}
        )

    @pytest.mark.asyncio
    async def test_no_cursor_param_when_absent(self, mock_client):
        mock_client.get.return_value = []
        await search_entities(mock_client, "x", ["boxes"])

        assert mock_client.get.call_args.kwargs["params"] == {"query": "x", "limit": 10}

    @pytest.mark.asyncio
    async def test_unsearchable_type_is_reported(self, mock_client):
        mock_client.get.return_value = {"results": [1], "count": 1}
        result = await search_entities(mock_client, "x", ["rules", "boxes"])

        assert "error" in result["results"]["rules"]
        assert result["total_count"] == 1

    @pytest.mark.asyncio
    async def test_upstream_message_in_error(self, mock_client, status_error):
        mock_client.get.side_effect = status_error(500, {"message": "backend down"})
        result = await search_entities(mock_client, "x", ["flows"])

        assert result["results"]["flows"] == {"error": "Failed to search flows: backend down"}
        assert result["total_count"] == 0
