"""Tests for the cscd command line interface."""

import re

import pytest
from click.testing import CliRunner

from cascadetm.cli import main


TASK_ID = re.compile(r"\((task-[0-9a-f]+)\)")


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def cscd(runner, tmp_path):
    """Invoke the CLI against a workspace in a temporary directory."""
    data_dir = str(tmp_path / ".cscd")

    def invoke(*args):
        return runner.invoke(main, ["--data-dir", data_dir, *args])

    return invoke


@pytest.fixture
def project(cscd):
    """A workspace with two members and one project."""
    assert cscd("init").exit_code == 0
    assert cscd("member", "add", "Ada", "--id", "mem-1").exit_code == 0
    assert cscd("member", "add", "Brian", "--id", "mem-2").exit_code == 0
    result = cscd("project", "add", "Harbour Pavilion", "--stage", "design",
                  "--lead", "mem-1", "--captain", "mem-2", "--id", "proj-1")
    assert result.exit_code == 0, result.output
    return "proj-1"


def add_task(cscd, name, *args):
    result = cscd("task", "add", "proj-1", name, "--by", "mem-1", *args)
    assert result.exit_code == 0, result.output
    return TASK_ID.search(result.output).group(1)


class TestWorkspace:
    """Test workspace setup commands."""

    def test_init(self, cscd):
        result = cscd("init")
        assert result.exit_code == 0
        assert "Initialized workspace" in result.output

    def test_init_twice(self, cscd):
        cscd("init")
        result = cscd("init")
        assert result.exit_code == 1
        assert "already initialized" in result.output

    def test_status_outside_workspace(self, cscd):
        result = cscd("status")
        assert result.exit_code == 0
        assert "Not in a workspace" in result.output

    def test_status(self, cscd, project):
        result = cscd("status")
        assert "👥 Members: 2" in result.output
        assert "📋 Projects: 1" in result.output
        assert "Design: 1" in result.output

    def test_commands_need_workspace(self, cscd):
        result = cscd("member", "list")
        assert result.exit_code == 1
        assert "No workspace" in result.output


class TestMembersAndProjects:
    """Test member and project commands."""

    def test_member_list_newest_first(self, cscd, project):
        result = cscd("member", "list")
        assert result.output.index("Brian") < result.output.index("Ada")

    def test_duplicate_member(self, cscd, project):
        result = cscd("member", "add", "Ada again", "--id", "mem-1")
        assert result.exit_code == 1

    def test_project_requires_known_members(self, cscd, project):
        result = cscd("project", "add", "Library", "--lead", "mem-9", "--captain", "mem-2")
        assert result.exit_code == 1
        assert "Unknown lead: mem-9" in result.output
        assert "Library" not in cscd("project", "list").output

    def test_project_list_by_stage(self, cscd, project):
        cscd("project", "add", "Library", "--lead", "mem-1", "--captain", "mem-2")
        result = cscd("project", "list", "--stage", "Pitch")
        assert "Library" in result.output
        assert "Harbour Pavilion" not in result.output

    def test_project_stage(self, cscd, project):
        result = cscd("project", "stage", "proj-1", "handover")
        assert result.exit_code == 0
        assert "now in Handover" in result.output
        assert cscd("project", "stage", "ghost", "Pitch").exit_code == 1

    def test_copy_from(self, cscd, project):
        add_task(cscd, "Concept")
        result = cscd("project", "add", "Library", "--lead", "mem-1", "--captain", "mem-2",
                      "--copy-from", "proj-1", "--id", "proj-2")
        assert "Copied 1 task(s)" in result.output
        assert "1. Concept" in cscd("project", "show", "proj-2").output

    def test_copy_from_unknown(self, cscd, project):
        result = cscd("project", "add", "Library", "--lead", "mem-1", "--captain", "mem-2",
                      "--copy-from", "ghost")
        assert result.exit_code == 1
        assert "Project not found: ghost" in result.output


class TestTasks:
    """Test task commands end to end."""

    def test_numbering(self, cscd, project):
        first = add_task(cscd, "Concept")
        add_task(cscd, "Structure")
        result = cscd("task", "add", "proj-1", "Sketch", "--by", "mem-1", "--parent", first)
        assert "Created 1.1. Sketch" in result.output

    def test_duration_sets_end_date(self, cscd, project):
        result = cscd("task", "add", "proj-1", "Survey", "--by", "mem-1",
                      "--start", "2026-01-02", "--duration", "3", "--weekdays-only")
        assert result.exit_code == 0

    def test_duration_needs_start(self, cscd, project):
        result = cscd("task", "add", "proj-1", "Survey", "--by", "mem-1", "--duration", "3")
        assert result.exit_code == 1

    def test_unknown_assignee(self, cscd, project):
        result = cscd("task", "add", "proj-1", "Survey", "--by", "mem-1", "--assign", "mem-9")
        assert result.exit_code == 1
        assert "Unknown member: mem-9" in result.output

    def test_blocked_close_is_reported(self, cscd, project):
        survey = add_task(cscd, "Survey", "--assign", "mem-2")
        design = add_task(cscd, "Design", "--depends-on", survey)

        result = cscd("task", "status", "proj-1", design, "CLOSED", "--by", "mem-1")

        assert result.exit_code == 1
        assert 'Action Blocked: Cannot close "2. Design" because it depends on "1. Survey"' in result.output
        blocked = cscd("task", "blocked", "proj-1").output
        assert '"2. Design" is waiting for "1. Survey" which is assigned to: Brian.' in blocked
        assert design in cscd("task", "blocking", "proj-1", survey).output

    def test_status_change_and_reopen_cascade(self, cscd, project):
        survey = add_task(cscd, "Survey")
        design = add_task(cscd, "Design", "--depends-on", survey)
        cscd("task", "status", "proj-1", survey, "closed", "--by", "mem-1")
        cscd("task", "status", "proj-1", design, "closed", "--by", "mem-1")

        result = cscd("task", "status", "proj-1", survey, "open", "--by", "mem-2")

        assert result.exit_code == 0
        assert "2. Design: CLOSED → OPEN" in result.output
        assert "1. Survey: CLOSED → OPEN" in result.output
        shown = cscd("project", "show", "proj-1").output
        assert "rev 1" in shown

        log = cscd("log", "proj-1").output.strip().splitlines()
        assert len(log) == 4
        assert log[-1].endswith("1. Survey: CLOSED → OPEN by Brian")

    def test_status_unchanged(self, cscd, project):
        survey = add_task(cscd, "Survey")
        result = cscd("task", "status", "proj-1", survey, "OPEN", "--by", "mem-1")
        assert "Status unchanged" in result.output
        assert "No activities" in cscd("log", "proj-1").output

    def test_subtasks_must_close_first(self, cscd, project):
        core = add_task(cscd, "Structure")
        add_task(cscd, "Beams", "--parent", core)
        result = cscd("task", "status", "proj-1", core, "CLOSED", "--by", "mem-1")
        assert result.exit_code == 1
        assert "1 sub-task(s) are not yet closed" in result.output

    def test_status_needs_known_member(self, cscd, project):
        survey = add_task(cscd, "Survey")
        result = cscd("task", "status", "proj-1", survey, "WIP", "--by", "mem-9")
        assert result.exit_code == 1
        assert "Unknown member: mem-9" in result.output

    def test_edit(self, cscd, project):
        survey = add_task(cscd, "Survey")
        result = cscd("task", "edit", "proj-1", survey, "--by", "mem-1",
                      "--description", "Topographic survey", "--status", "wip")
        assert result.exit_code == 0
        assert "1. Survey: OPEN → WIP" in result.output

    def test_filter_and_mine(self, cscd, project):
        survey = add_task(cscd, "Survey", "--assign", "mem-2")
        add_task(cscd, "Budget")
        cscd("task", "status", "proj-1", survey, "WIP", "--by", "mem-2")

        shown = cscd("project", "show", "proj-1", "--status", "WIP").output
        assert "1. Survey" in shown
        assert "2. Budget" not in shown

        mine = cscd("task", "mine", "mem-2").output
        assert "Harbour Pavilion" in mine
        assert "1. Survey" in mine
        assert "No tasks assigned" in cscd("task", "mine", "mem-1").output
