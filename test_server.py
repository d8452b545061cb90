"""
Tests for the MCP tool handlers
"""

import json

import pytest

import clickup_mcp_server as srv
from clickup_bridge import config

EXAMPLE = "crea una tarea en clientes, somos puertas, revisar propuesta, asignar a juan, urgente"


@pytest.fixture
def tools(fake, make_client, bridge_config, monkeypatch):
    monkeypatch.setattr(srv, "client_factory", make_client)
    return srv


class TestCreateTools:

    @pytest.mark.asyncio
    async def test_create_task_from_text(self, tools, fake):
        result = await tools.create_task_from_text(text=EXAMPLE)

        assert result["success"] is True
        assert result["status"] == 200
        assert result["task_id"] == "task1"
        assert result["resolution"]["list"]["entity"]["name"] == "Propuestas"
        assert result["resolution"]["nlp_used"] is True

    @pytest.mark.asyncio
    async def test_overrides_apply_on_top_of_text(self, tools, fake):
        result = await tools.create_task_from_text(text=EXAMPLE, priority="low", list_filter="segui")

        assert result["resolution"]["list"]["strategy"] == "explicit_filter"
        assert fake.created[0]["priority"] == 4

    @pytest.mark.asyncio
    async def test_text_required(self, tools):
        result = await tools.create_task_from_text(text="  ")
        assert result["status"] == 400
        assert result["error_code"] == "MISSING_TEXT"

    @pytest.mark.asyncio
    async def test_missing_list_is_404_with_trace(self, tools, fake):
        result = await tools.create_task(space_name="archivo", task_name="x")

        assert result["success"] is False
        assert result["status"] == 404
        assert result["details"]["target"] == "list"
        assert result["details"]["attempts"]

    @pytest.mark.asyncio
    async def test_unknown_space_is_404(self, tools):
        result = await tools.create_task(space_name="Nowhere", task_name="x")
        assert result["status"] == 404
        assert result["details"]["target"] == "space"

    @pytest.mark.asyncio
    async def test_invalid_input_is_400(self, tools, fake):
        result = await tools.create_task(task_name="x", priority="someday")

        assert result["status"] == 400
        assert fake.requests == []

    @pytest.mark.asyncio
    async def test_no_credential_is_401(self, tools, monkeypatch):
        monkeypatch.setattr(config, "CLICKUP_API_TOKEN", None)
        result = await tools.create_task(task_name="x")
        assert result["status"] == 401

    @pytest.mark.asyncio
    async def test_unexpected_failure_is_500(self, tools, monkeypatch):
        async def broken(request, client):
            raise KeyError("boom")

        monkeypatch.setattr(srv.synthesizer, "create_task", broken)
        result = await tools.create_task(task_name="x")

        assert result["status"] == 500
        assert result["error_code"] == "INTERNAL_ERROR"
        assert result["error"].startswith("Failed to create task: 'boom'")


class TestDryRunTools:

    @pytest.mark.asyncio
    async def test_extract_task_command(self, tools, fake):
        result = await tools.extract_task_command(text=EXAMPLE)

        assert result["extracted"]["priority"] == "urgent"
        assert result["command"]["team_id"] == "t1"
        assert result["canonical_space"] == "Clientes"
        assert result["missing_fields"] == []
        assert fake.requests == []

    @pytest.mark.asyncio
    async def test_extract_reports_missing_team(self, tools, monkeypatch):
        monkeypatch.setattr(config, "CLICKUP_TEAM_ID", "")
        result = await tools.extract_task_command(text=EXAMPLE)
        assert result["missing_fields"] == ["team_id"]

    @pytest.mark.asyncio
    async def test_normalize_space_name(self, tools):
        result = await tools.normalize_space_name(name="PIGMEA sl")
        assert result["canonical"] == "PIGMEA S.L."


class TestListingTools:

    @pytest.mark.asyncio
    async def test_list_spaces_filtered(self, tools):
        result = await tools.list_spaces(query="pigmea")
        assert result["spaces"] == [{"id": "s2", "name": "PIGMEA S.L."}]

    @pytest.mark.asyncio
    async def test_list_lists_needs_exactly_one_scope(self, tools):
        assert (await tools.list_lists())["status"] == 400
        assert (await tools.list_lists(folder_id="f1", space_id="s1"))["status"] == 400

    @pytest.mark.asyncio
    async def test_list_lists_for_whole_space(self, tools):
        result = await tools.list_lists(space_id="s1")
        assert sorted(entry["id"] for entry in result["lists"]) == ["l1", "l2", "l3", "l4"]

    @pytest.mark.asyncio
    async def test_list_folders_too_large_is_413(self, tools, fake):
        fake.failures["/space/s1/folder"] = (413, {"err": "Too large"})
        result = await tools.list_folders(space_id="s1")

        assert result["status"] == 413
        assert result["error_code"] == "RESULT_TOO_LARGE"
        assert result["details"]["suggestions"]

    @pytest.mark.asyncio
    async def test_find_users(self, tools):
        result = await tools.find_users(query="acme.com")
        assert [u["id"] for u in result["users"]] == [101, 102, 103]

    @pytest.mark.asyncio
    async def test_list_teams(self, tools):
        result = await tools.list_teams()
        assert result["teams"] == [{"id": "t1", "name": "Acme"}]


class TestDispatch:

    @pytest.mark.asyncio
    async def test_call_tool_returns_json_text(self, tools):
        content = await srv.handle_call_tool("normalize_space_name", {"name": "mkt"})
        assert json.loads(content[0].text)["canonical"] == "Marketing"

    @pytest.mark.asyncio
    async def test_bad_arguments(self, tools):
        content = await srv.handle_call_tool("list_folders", {"bogus": 1})
        assert json.loads(content[0].text)["status"] == 400

    @pytest.mark.asyncio
    async def test_unknown_tool(self, tools):
        with pytest.raises(ValueError):
            await srv.handle_call_tool("delete_everything", {})

    @pytest.mark.asyncio
    async def test_every_handler_is_listed(self):
        listed = {tool.name for tool in await srv.handle_list_tools()}
        assert listed == set(srv.TOOL_HANDLERS)
