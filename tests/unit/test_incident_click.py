"""Unit tests for incident CLI commands."""

import json

import click
import pytest
from click.testing import CliRunner

from pdcli.incident_click import incident_columns, register_incident_commands

INCIDENTS = [
    {
        "id": "Q1AAAAAAA",
        "incident_number": 101,
        "status": "triggered",
        "urgency": "high",
        "title": "Disk full",
        "created_at": "2024-03-01T12:00:00Z",
        "priority": {"id": "PRI0001", "summary": "P1"},
        "service": {"id": "PSVC001", "summary": "Storage"},
        "assignments": [
            {"assignee": {"id": "PUSER01", "summary": "Ada"}},
            {"assignee": {"id": "PUSER02", "summary": "Grace"}},
        ],
        "teams": [{"id": "PTEAM01", "summary": "Platform"}],
        "html_url": "https://example.pagerduty.com/incidents/Q1AAAAAAA",
    },
    {
        "id": "Q1BBBBBBB",
        "incident_number": 102,
        "status": "acknowledged",
        "urgency": "low",
        "title": "CPU high",
        "created_at": "2024-03-02T12:00:00Z",
        "priority": None,
        "service": {"id": "PSVC002", "summary": "Compute"},
        "assignments": [],
        "teams": [],
        "html_url": "https://example.pagerduty.com/incidents/Q1BBBBBBB",
    },
]

LOG_ENTRIES = {
    "PABC123": [
        {
            "id": "RLOG002",
            "type": "acknowledge_log_entry",
            "created_at": "2024-03-01T12:05:00Z",
            "summary": "Acknowledged by Ada",
            "incident": {"id": "PABC123"},
        },
        {
            "id": "RLOG001",
            "type": "trigger_log_entry",
            "created_at": "2024-03-01T12:00:00Z",
            "summary": "Triggered via the API",
            "incident": {"id": "PABC123"},
        },
    ],
    "PDEF456": [
        {
            "id": "RLOG003",
            "type": "resolve_log_entry",
            "created_at": "2024-03-01T12:10:00Z",
            "summary": "Resolved by Grace",
            "incident": {"id": "PDEF456"},
        },
    ],
}


def make_cli():
    """Create CLI instance with incident commands for testing."""

    @click.group()
    def test_cli():
        pass

    register_incident_commands(test_cli)
    return test_cli


@pytest.fixture
def runner():
    return CliRunner()


def route_log_entries(fake_api):
    for incident_id, entries in LOG_ENTRIES.items():
        fake_api.route(
            f"incidents/{incident_id}/log_entries", {"log_entries": entries, "more": False}
        )


class TestIncidentList:
    """Test incident list command."""

    def test_table_output(self, runner, fake_api):
        fake_api.route("incidents", {"incidents": INCIDENTS, "more": False})
        fake_api.route("priorities", {"priorities": [{"id": "PRI0001", "color": "a8171c"}]})

        result = runner.invoke(make_cli(), ["incident", "list"])

        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0].split()[:4] == ["ID", "#", "Status", "Priority"]
        assert "Q1AAAAAAA" in result.output
        assert "Storage" in result.output
        assert "Platform" in result.output
        assert "URL" not in lines[0]

    def test_default_filters_sent(self, runner, fake_api):
        fake_api.route("incidents", {"incidents": INCIDENTS, "more": False})

        runner.invoke(make_cli(), ["incident", "list"])

        params = fake_api.params_for("incidents")
        assert params["statuses[]"] == ["triggered", "acknowledged"]
        assert params["urgencies[]"] == ["high", "low"]

    def test_no_incidents_is_not_an_error(self, runner, fake_api):
        fake_api.route("incidents", {"incidents": [], "more": False})

        result = runner.invoke(make_cli(), ["incident", "list", "--statuses", "closed"])

        assert result.exit_code == 0
        assert "No incidents found" in result.output
        assert fake_api.params_for("incidents")["statuses[]"] == ["resolved"]

    def test_keys_with_delimiter(self, runner, fake_api):
        fake_api.route("incidents", {"incidents": INCIDENTS, "more": False})

        result = runner.invoke(
            make_cli(),
            [
                "incident",
                "list",
                "-k",
                "$.assignments[*].assignee.summary",
                "-d",
                " | ",
                "--columns",
                "id,$.assignments[*].assignee.summary",
            ],
        )

        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0].split() == ["ID", "$.assignments[*].assignee.summary"]
        assert lines[2].split(None, 1) == ["Q1AAAAAAA", "Ada | Grace"]
        assert lines[3].strip() == "Q1BBBBBBB"

    def test_json_output(self, runner, fake_api):
        fake_api.route("incidents", {"incidents": INCIDENTS, "more": False})

        result = runner.invoke(make_cli(), ["incident", "list", "--json"])

        assert result.exit_code == 0
        assert json.loads(result.output) == INCIDENTS
        assert "priorities" not in fake_api.paths()

    def test_json_with_extended_is_rejected_before_any_request(self, runner, fake_api):
        result = runner.invoke(make_cli(), ["incident", "list", "--json", "--extended"])

        assert result.exit_code == 2
        assert "--json cannot be used with --extended" in result.output
        assert fake_api.calls == []

    def test_pipe_prints_ids_only(self, runner, fake_api):
        fake_api.route("incidents", {"incidents": INCIDENTS, "more": False})

        result = runner.invoke(
            make_cli(), ["incident", "list", "--pipe", "-k", "$.title", "-k", "$.service.summary"]
        )

        assert result.exit_code == 0
        assert result.output.splitlines() == ["Q1AAAAAAA", "Q1BBBBBBB"]
        assert "priorities" not in fake_api.paths()

    def test_pipe_with_sort_is_rejected(self, runner, fake_api):
        result = runner.invoke(make_cli(), ["incident", "list", "--pipe", "--sort", "id"])
        assert result.exit_code == 2
        assert fake_api.calls == []

    def test_malformed_key_is_invalid_input(self, runner, fake_api):
        fake_api.route("incidents", {"incidents": INCIDENTS, "more": False})

        result = runner.invoke(make_cli(), ["incident", "list", "-k", "$.assignments[*"])

        assert result.exit_code == 2
        assert "$.assignments[*" in result.output

    def test_me_resolves_current_user(self, runner, fake_api):
        fake_api.route("users/me", {"user": {"id": "PME0001"}})
        fake_api.route("incidents", {"incidents": INCIDENTS[:1], "more": False})

        result = runner.invoke(make_cli(), ["incident", "list", "--me", "--json"])

        assert result.exit_code == 0
        assert fake_api.params_for("incidents")["user_ids[]"] == ["PME0001"]

    def test_me_and_assignees_conflict(self, runner, fake_api):
        result = runner.invoke(
            make_cli(), ["incident", "list", "--me", "--assignees", "ada@example.com"]
        )
        assert result.exit_code == 2
        assert result.output.count("--me and --assignees cannot be used together") == 1
        assert fake_api.calls == []

    def test_unresolved_team_is_fatal(self, runner, fake_api):
        fake_api.route("teams", {"teams": [], "more": False})

        result = runner.invoke(make_cli(), ["incident", "list", "--teams", "Ghosts"])

        assert result.exit_code == 1
        assert "No teams found. Please check your search." in result.output
        assert "incidents" not in fake_api.paths()

    def test_resolved_names_become_id_filters(self, runner, fake_api):
        fake_api.route("services", {"services": [{"id": "PSVC001"}], "more": False})
        fake_api.route("incidents", {"incidents": INCIDENTS[:1], "more": False})

        result = runner.invoke(make_cli(), ["incident", "list", "-S", "Storage", "--pipe"])

        assert result.exit_code == 0
        assert fake_api.params_for("services")["query"] == ["Storage"]
        assert fake_api.params_for("incidents")["service_ids[]"] == ["PSVC001"]

    def test_limit(self, runner, fake_api):
        fake_api.route("incidents", {"incidents": INCIDENTS, "more": True})

        result = runner.invoke(make_cli(), ["incident", "list", "--limit", "1", "--pipe"])

        assert result.exit_code == 0
        assert result.output.splitlines() == ["Q1AAAAAAA"]
        assert fake_api.params_for("incidents")["limit"] == ["1"]

    def test_permission_denied(self, runner, fake_api):
        fake_api.fail("incidents", 401)

        result = runner.invoke(make_cli(), ["incident", "list", "--json"])

        assert result.exit_code == 4

    def test_invalid_status_choice(self, runner, fake_api):
        result = runner.invoke(make_cli(), ["incident", "list", "--statuses", "sleeping"])
        assert result.exit_code == 2


class TestIncidentLog:
    """Test incident log command."""

    def test_log_entries_sorted_by_created(self, runner, fake_api):
        route_log_entries(fake_api)

        result = runner.invoke(make_cli(), ["incident", "log", "-i", "PABC123,PDEF456"])

        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0].startswith("Log Entry ID")
        assert [line.split()[0] for line in lines[2:]] == ["RLOG001", "RLOG002", "RLOG003"]

    def test_ids_from_stdin(self, runner, fake_api):
        route_log_entries(fake_api)

        result = runner.invoke(
            make_cli(),
            ["incident", "log", "--pipe", "--overview", "--json"],
            input="PABC123\nPDEF456\nPABC123\n",
        )

        assert result.exit_code == 0
        assert [e["id"] for e in json.loads(result.output)] == ["RLOG002", "RLOG001", "RLOG003"]
        assert fake_api.paths() == [
            "incidents/PABC123/log_entries",
            "incidents/PDEF456/log_entries",
        ]
        assert fake_api.calls[0][1]["is_overview"] == ["true"]

    def test_invalid_piped_id_is_rejected_before_fetching(self, runner, fake_api):
        result = runner.invoke(make_cli(), ["incident", "log", "--pipe"], input="PABC123\nbad!")

        assert result.exit_code == 2
        assert "Invalid incident ID's: bad!" in result.output
        assert "PABC123" not in result.output
        assert fake_api.calls == []

    def test_requires_ids_or_pipe(self, runner, fake_api):
        result = runner.invoke(make_cli(), ["incident", "log"])
        assert result.exit_code == 2
        assert "You must specify at least one of: -i, -p" in result.output

    def test_ids_and_pipe_conflict(self, runner, fake_api):
        result = runner.invoke(make_cli(), ["incident", "log", "-i", "PABC123", "-p"], input="")
        assert result.exit_code == 2

    def test_no_log_entries(self, runner, fake_api):
        fake_api.route("incidents/PABC123/log_entries", {"log_entries": [], "more": False})

        result = runner.invoke(make_cli(), ["incident", "log", "-i", "PABC123"])

        assert result.exit_code == 0
        assert "No log entries found." in result.output

    def test_unknown_incident(self, runner, fake_api):
        result = runner.invoke(make_cli(), ["incident", "log", "-i", "PNOPE00"])
        assert result.exit_code == 3

    def test_limit_spans_incidents(self, runner, fake_api):
        route_log_entries(fake_api)

        result = runner.invoke(
            make_cli(), ["incident", "log", "-i", "PABC123", "-i", "PDEF456", "--limit", "2", "-j"]
        )

        assert result.exit_code == 0
        assert len(json.loads(result.output)) == 2
        assert fake_api.paths() == ["incidents/PABC123/log_entries"]

    def test_keys_on_log_entries(self, runner, fake_api):
        route_log_entries(fake_api)

        result = runner.invoke(
            make_cli(),
            ["incident", "log", "-i", "PDEF456", "-k", "$.incident.id", "--no-header"],
        )

        assert result.exit_code == 0
        assert result.output.split()[-1] == "PDEF456"


class TestIncidentColumns:
    """Test the incident column schema."""

    def test_priority_uses_palette_color(self):
        columns = {c.key: c for c in incident_columns({"PRI0001": {"color": "a8171c"}})}
        value = columns["priority"].value(INCIDENTS[0])
        assert click.unstyle(value) == "P1"
        assert value != "P1"
        assert columns["priority"].value(INCIDENTS[1]) == ""

    def test_assignees_joined_with_delimiter(self):
        columns = {c.key: c for c in incident_columns({}, delimiter=", ")}
        assert columns["assigned_to"].value(INCIDENTS[0]) == "Ada, Grace"
        assert columns["teams"].value(INCIDENTS[1]) == ""
