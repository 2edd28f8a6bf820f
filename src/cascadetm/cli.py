"""
Command Line Interface for Cascade Task Manager.
"""

import click
from pathlib import Path
from pydantic import ValidationError
from .version import VERSION
from .data import DataCore
from .engine import TaskEdit
from .graph import filter_by_status
from .models import TaskStatus, ProjectStage
from .naming import TaskDraft, calculate_end_date
from .recovery import CascadeError

STATUS_ICONS = {
    TaskStatus.OPEN: "⚪",
    TaskStatus.WIP: "🟡",
    TaskStatus.CLOSED: "✅",
}

STATUS_CHOICE = click.Choice([s.value for s in TaskStatus], case_sensitive=False)
STAGE_CHOICE = click.Choice([s.value for s in ProjectStage], case_sensitive=False)
DATE_TYPE = click.DateTime(formats=["%Y-%m-%d"])


def _workspace(ctx):
    return DataCore.get_context(ctx.obj["data_dir"])


def _fail(message):
    click.echo(f"❌ {message}")
    click.get_current_context().exit(1)


def _task_line(task, members, indent=""):
    icon = STATUS_ICONS[task.status]
    assignees = ", ".join(members.names(task.assigned_to)) or "unassigned"
    line = f"{indent}{icon} {task.name} [{task.status.value}] ({task.id}) - {assignees}"
    if task.revision:
        line += f" 🔁 rev {task.revision}"
    return line


@click.group()
@click.version_option(version=VERSION, prog_name="cscd")
@click.option('--data-dir', type=click.Path(file_okay=False, path_type=Path), default=None,
              help='Workspace directory (default: .cscd)')
@click.pass_context
def main(ctx, data_dir):
    """
    Cascade Task Manager - projects, tasks and dependency-aware status changes.
    """
    ctx.ensure_object(dict)
    ctx.obj["data_dir"] = data_dir or DataCore.PROJECT_DATA_DIR


@main.command()
@click.pass_context
def init(ctx):
    """Initialize a new workspace in the current directory."""
    data_dir = ctx.obj["data_dir"]
    if DataCore.is_workspace(data_dir):
        _fail(f"Workspace already initialized ({data_dir} exists)")

    try:
        DataCore.init_workspace(data_dir)
    except CascadeError as e:
        _fail(f"Error initializing workspace: {e}")

    click.echo(f"🚀 Initialized workspace in {data_dir}")
    click.echo("💡 Use 'cscd member add' to add the first member")


@main.command()
@click.pass_context
def status(ctx):
    """Show the workspace status."""
    click.echo("🔧 Cascade Task Manager")
    click.echo(f"📦 Version: {VERSION}")

    data_dir = ctx.obj["data_dir"]
    if not DataCore.is_workspace(data_dir):
        click.echo("❌ Not in a workspace directory")
        click.echo("💡 Run 'cscd init' to initialize a workspace")
        return

    try:
        with _workspace(ctx) as ws:
            tracker = ws.tracker
            click.echo(f"📍 Location: {data_dir}")
            click.echo(f"👥 Members: {len(tracker.members)}")
            click.echo(f"📋 Projects: {len(tracker.projects)}")
            for stage, count in tracker.stage_counts().items():
                click.echo(f"   {stage.value}: {count}")
            click.echo(f"📝 Log entries: {len(tracker.audit)}")
    except CascadeError as e:
        _fail(f"Error loading workspace: {e}")


# -- members ---------------------------------------------------------------

@main.group()
def member():
    """Manage members."""
    pass


@member.command("add")
@click.argument('name')
@click.option('--id', 'member_id', help='Explicit member id')
@click.pass_context
def member_add(ctx, name, member_id):
    """Add a member."""
    try:
        with _workspace(ctx) as ws:
            new_member = ws.tracker.add_member(name, member_id)
    except (CascadeError, ValueError) as e:
        _fail(f"Error adding member: {e}")
    click.echo(f"👤 Added {new_member.name} ({new_member.id})")


@member.command("list")
@click.pass_context
def member_list(ctx):
    """List all members."""
    try:
        with _workspace(ctx) as ws:
            members = ws.tracker.members.list()
    except CascadeError as e:
        _fail(f"Error loading workspace: {e}")

    if not members:
        click.echo("📭 No members yet")
        return
    for m in members:
        click.echo(f"👤 {m.name} ({m.id})")


# -- projects --------------------------------------------------------------

@main.group()
def project():
    """Manage projects."""
    pass


@project.command("add")
@click.argument('name')
@click.option('--stage', type=STAGE_CHOICE, default=ProjectStage.PITCH.value, help='Project stage')
@click.option('--lead', required=True, help='Member id of the project lead')
@click.option('--captain', required=True, help='Member id of the design captain')
@click.option('--copy-from', help='Copy the tasks of an existing project')
@click.option('--id', 'project_id', help='Explicit project id')
@click.pass_context
def project_add(ctx, name, stage, lead, captain, copy_from, project_id):
    """Create a project."""
    try:
        with _workspace(ctx) as ws:
            tracker = ws.tracker
            for role, member_id in (("lead", lead), ("captain", captain)):
                if member_id not in tracker.members:
                    _fail(f"Unknown {role}: {member_id}")
            new_project = tracker.create_project(name, stage, lead, captain, copy_from=copy_from, project_id=project_id)
    except (CascadeError, ValueError) as e:
        _fail(f"Error creating project: {e}")

    click.echo(f"📋 Created project {new_project.name} ({new_project.id})")
    if copy_from:
        click.echo(f"📑 Copied {len(new_project.tasks)} task(s) from {copy_from}")


@project.command("list")
@click.option('--stage', type=STAGE_CHOICE, help='Only show projects in this stage')
@click.pass_context
def project_list(ctx, stage):
    """List projects."""
    try:
        with _workspace(ctx) as ws:
            projects = ws.tracker.projects.list()
    except CascadeError as e:
        _fail(f"Error loading workspace: {e}")

    if stage:
        wanted = ProjectStage.parse(stage)
        projects = [p for p in projects if p.stage == wanted]
    if not projects:
        click.echo("📭 No projects found")
        return
    for p in projects:
        closed = sum(1 for t in p.tasks if t.status == TaskStatus.CLOSED)
        click.echo(f"📋 {p.name} ({p.id}) - {p.stage.value}, {closed}/{len(p.tasks)} closed")


@project.command("show")
@click.argument('project_id')
@click.option('--status', 'statuses', type=STATUS_CHOICE, multiple=True, help='Filter by status')
@click.pass_context
def project_show(ctx, project_id, statuses):
    """Show a project and its tasks."""
    try:
        with _workspace(ctx) as ws:
            tracker = ws.tracker
            proj = tracker.projects.require(project_id)
            blocked = tracker.query_blocked(project_id)
            members = tracker.members
    except CascadeError as e:
        _fail(str(e))

    click.echo(f"📋 {proj.name} ({proj.id})")
    click.echo(f"   🏗️  Stage: {proj.stage.value}")
    click.echo(f"   🧭 Lead: {', '.join(members.names([proj.project_lead]))}")
    click.echo(f"   🎨 Design captain: {', '.join(members.names([proj.design_captain]))}")
    if blocked:
        click.echo(f"   ⛔ Blocked tasks: {len(blocked)}")
    click.echo("")

    visible = filter_by_status(proj.tasks, [TaskStatus.parse(s) for s in statuses])
    if not visible:
        click.echo("📭 No tasks")
        return
    for task in visible:
        click.echo(_task_line(task, members, indent="   " if task.is_subtask else ""))


@project.command("stage")
@click.argument('project_id')
@click.argument('stage', type=STAGE_CHOICE)
@click.pass_context
def project_stage(ctx, project_id, stage):
    """Move a project to another stage."""
    try:
        with _workspace(ctx) as ws:
            updated = ws.tracker.set_stage(project_id, stage)
    except CascadeError as e:
        _fail(str(e))

    if updated is None:
        _fail(f"Unknown project: {project_id}")
    click.echo(f"🏗️  {updated.name} is now in {updated.stage.value}")


# -- tasks -----------------------------------------------------------------

@main.group()
def task():
    """Manage tasks."""
    pass


@task.command("add")
@click.argument('project_id')
@click.argument('name')
@click.option('--by', 'assigned_by', required=True, help='Member id of the task owner')
@click.option('--assign', 'assigned_to', multiple=True, help='Member id to assign (up to 4)')
@click.option('--parent', 'parent_id', help='Core task id, to create a sub-task')
@click.option('--depends-on', 'dependency_id', help='Id of the task this one waits on')
@click.option('--description', default="", help='Task description')
@click.option('--start', type=DATE_TYPE, help='Start date (YYYY-MM-DD)')
@click.option('--end', type=DATE_TYPE, help='End date (YYYY-MM-DD)')
@click.option('--duration', type=int, help='Duration in days, used instead of --end')
@click.option('--weekdays-only', is_flag=True, help='Count only weekdays in --duration')
@click.pass_context
def task_add(ctx, project_id, name, assigned_by, assigned_to, parent_id, dependency_id,
             description, start, end, duration, weekdays_only):
    """Add a core task or sub-task."""
    start_date = start.date() if start else None
    end_date = end.date() if end else None
    if duration is not None:
        if start_date is None:
            _fail("--duration needs --start")
        end_date = calculate_end_date(start_date, duration, weekdays_only)

    try:
        draft = TaskDraft(
            name=name,
            description=description,
            start_date=start_date,
            end_date=end_date,
            assigned_to=list(assigned_to),
            assigned_by=assigned_by,
            dependency_id=dependency_id,
            parent_id=parent_id,
        )
    except ValidationError as e:
        _fail(f"Invalid task: {e.errors()[0]['msg']}")

    try:
        with _workspace(ctx) as ws:
            tracker = ws.tracker
            for member_id in [assigned_by, *draft.assigned_to]:
                if member_id not in tracker.members:
                    _fail(f"Unknown member: {member_id}")
            result = tracker.create_task(project_id, draft)
    except CascadeError as e:
        _fail(str(e))

    if not result.ok:
        _fail(result.rejected.message)
    click.echo(f"📝 Created {result.task.name} ({result.task.id})")


@task.command("status")
@click.argument('project_id')
@click.argument('task_id')
@click.argument('new_status', type=STATUS_CHOICE)
@click.option('--by', 'changed_by', required=True, help='Member id of who is making this change')
@click.pass_context
def task_status(ctx, project_id, task_id, new_status, changed_by):
    """Change a task's status."""
    try:
        with _workspace(ctx) as ws:
            result = ws.tracker.apply_status_change(project_id, task_id, new_status, changed_by)
    except CascadeError as e:
        _fail(str(e))

    if not result.ok:
        _fail(f"Action Blocked: {result.rejected.message}")
    if not result.entries:
        click.echo("💤 Status unchanged")
        return
    for entry in result.entries:
        click.echo(f"{STATUS_ICONS[entry.new_status]} {entry.task_name}: "
                   f"{entry.previous_status.value} → {entry.new_status.value}")


@task.command("edit")
@click.argument('project_id')
@click.argument('task_id')
@click.option('--by', 'changed_by', required=True, help='Member id of who is making this change')
@click.option('--name', help='New task name')
@click.option('--description', help='New description')
@click.option('--depends-on', 'dependency_id', help='Id of the task this one waits on')
@click.option('--no-dependency', is_flag=True, help='Remove the dependency')
@click.option('--status', 'new_status', type=STATUS_CHOICE, help='New status')
@click.pass_context
def task_edit(ctx, project_id, task_id, changed_by, name, description, dependency_id, no_dependency, new_status):
    """Edit a task's details and, optionally, its status."""
    changes = {k: v for k, v in (("name", name), ("description", description),
                                 ("dependency_id", dependency_id)) if v is not None}
    if new_status:
        changes["status"] = TaskStatus.parse(new_status)
    edit = TaskEdit(clear_dependency=no_dependency, **changes)

    try:
        with _workspace(ctx) as ws:
            result = ws.tracker.edit_task(project_id, task_id, edit, changed_by)
    except CascadeError as e:
        _fail(str(e))

    if not result.ok:
        _fail(f"Action Blocked: {result.rejected.message}")
    click.echo(f"✏️  Updated {task_id}")
    for entry in result.entries:
        click.echo(f"{STATUS_ICONS[entry.new_status]} {entry.task_name}: "
                   f"{entry.previous_status.value} → {entry.new_status.value}")


@task.command("blocked")
@click.argument('project_id')
@click.pass_context
def task_blocked(ctx, project_id):
    """List tasks waiting on an unfinished dependency."""
    try:
        with _workspace(ctx) as ws:
            tracker = ws.tracker
            proj = tracker.projects.require(project_id)
            blocked = tracker.query_blocked(project_id)
            members = tracker.members
    except CascadeError as e:
        _fail(str(e))

    if not blocked:
        click.echo("✅ Nothing is blocked")
        return
    click.echo("⛔ Blocked Tasks:")
    for t in blocked:
        dependency = proj.find_task(t.dependency_id)
        owners = ", ".join(members.names(dependency.assigned_to)) or "nobody"
        click.echo(f'   "{t.name}" is waiting for "{dependency.name}" which is assigned to: {owners}.')


@task.command("blocking")
@click.argument('project_id')
@click.argument('task_id')
@click.pass_context
def task_blocking(ctx, project_id, task_id):
    """List the tasks a task is holding back."""
    try:
        with _workspace(ctx) as ws:
            held = ws.tracker.query_blocking(project_id, task_id)
            members = ws.tracker.members
    except CascadeError as e:
        _fail(str(e))

    if not held:
        click.echo("✅ Not blocking anything")
        return
    for t in held:
        click.echo(_task_line(t, members))


@task.command("mine")
@click.argument('member_id')
@click.option('--status', 'statuses', type=STATUS_CHOICE, multiple=True, help='Filter by status')
@click.pass_context
def task_mine(ctx, member_id, statuses):
    """List the tasks assigned to a member, grouped by project."""
    try:
        with _workspace(ctx) as ws:
            groups = ws.tracker.tasks_for_member(member_id)
            members = ws.tracker.members
    except CascadeError as e:
        _fail(str(e))

    wanted = {TaskStatus.parse(s) for s in statuses}
    shown = 0
    for proj, tasks in groups:
        tasks = [t for t in tasks if not wanted or t.status in wanted]
        if not tasks:
            continue
        click.echo(f"📋 {proj.name}")
        for t in tasks:
            click.echo(_task_line(t, members, indent="   "))
        shown += len(tasks)
    if not shown:
        click.echo("📭 No tasks assigned")


# -- audit log -------------------------------------------------------------

@main.command("log")
@click.argument('project_id')
@click.pass_context
def show_log(ctx, project_id):
    """Show the status change log of a project, oldest first."""
    try:
        with _workspace(ctx) as ws:
            entries = ws.tracker.get_logs(project_id)
            members = ws.tracker.members
    except CascadeError as e:
        _fail(str(e))

    if not entries:
        click.echo("📭 No activities logged for this project yet")
        return
    for entry in entries:
        who = ", ".join(members.names([entry.changed_by]))
        click.echo(f"🕒 {entry.timestamp.isoformat(timespec='seconds')} {entry.task_name}: "
                   f"{entry.previous_status.value} → {entry.new_status.value} by {who}")


if __name__ == "__main__":
    main()
