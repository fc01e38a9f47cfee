"""Command-line interface for the report lifecycle engine."""

import json

import click
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from .database import SessionLocal, init_db  # noqa: E402
from .models.enums import CorrectionStatus, FormType, MicroPhase, Role  # noqa: E402
from .schemas import (  # noqa: E402
    CorrectionItemResponse,
    CorrectionListResponse,
    CreateCorrectionsRequest,
    FieldUpdateRequest,
    FieldUpdateResponse,
    ReportCreate,
    ReportResponse,
    ResolveCorrectionRequest,
    StatusChangeRequest,
    ValidationResponse,
)
from .services import correction_service, report_service  # noqa: E402
from .workflow import SCHEMAS, get_schema  # noqa: E402

FORM_TYPES = click.Choice([f.value for f in FormType], case_sensitive=False)
ROLES = click.Choice([r.value for r in Role], case_sensitive=False)
PHASES = click.Choice([p.value for p in MicroPhase], case_sensitive=False)


def _fail(message):
    click.echo(f"❌ Error: {message}", err=True)
    raise SystemExit(1)


def _json_object(ctx, param, value):
    """Parse a JSON object option."""
    if value is None:
        return {}
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}")
    if not isinstance(parsed, dict):
        raise click.BadParameter("must be a JSON object")
    return parsed


def _echo_model(model):
    click.echo(model.model_dump_json(indent=2, by_alias=True))


@click.group()
def cli():
    """LIMS report lifecycle CLI."""
    pass


# Database commands
@cli.group()
def db():
    """Database management commands."""
    pass


@db.command()
def init():
    """Initialize the database."""
    click.echo("Initializing database...")
    init_db()
    click.echo("✅ Database initialized successfully!")


# Workflow commands
@cli.group()
def workflow():
    """Status graph inspection commands."""
    pass


@workflow.command()
@click.argument("form_type", type=FORM_TYPES)
@click.option("--json", "as_json", is_flag=True, help="Print the graph as JSON")
def show(form_type, as_json):
    """Show the status graph of a form."""
    schema = get_schema(form_type)
    definition = schema.graph.definition()
    if as_json:
        click.echo(json.dumps(definition, indent=2))
        return

    click.echo(f"\n{schema.form_type.value} ({schema.graph.name} graph, {len(definition)} statuses)\n")
    for status, entry in definition.items():
        if entry["terminal"]:
            click.echo(f"{status}  [terminal]")
            continue
        click.echo(f"{status}")
        click.echo(f"   next:     {', '.join(entry['next'])}")
        click.echo(f"   can set:  {', '.join(entry['canSet'])}")
        click.echo(f"   can edit: {', '.join(entry['canEdit'])}")


@workflow.command()
def check():
    """Check that every status is reachable and every live status can reach LOCKED."""
    problems = []
    for form_type, schema in SCHEMAS.items():
        graph = schema.graph
        reachable = graph.reachable_from(schema.initial_status)
        for status in graph.statuses:
            if status not in reachable:
                problems.append(f"{form_type.value}: {status.value} unreachable from DRAFT")
            elif not graph.is_terminal(status) and graph.coerce("LOCKED") not in graph.reachable_from(status):
                problems.append(f"{form_type.value}: {status.value} cannot reach LOCKED")

    if problems:
        for problem in problems:
            click.echo(f"❌ {problem}", err=True)
        raise SystemExit(1)
    click.echo(f"✅ {len(SCHEMAS)} report schemas are consistent")


@workflow.command(name="next")
@click.argument("form_type", type=FORM_TYPES)
@click.argument("status")
@click.option("--role", type=ROLES, required=True, help="Acting role")
def next_statuses(form_type, status, role):
    """List the statuses ROLE may move a report to from STATUS."""
    schema = get_schema(form_type)
    try:
        allowed = schema.graph.allowed_transitions(role, status)
    except ValueError as e:
        _fail(e)

    if allowed:
        for target in allowed:
            click.echo(target.value)
    else:
        click.echo(f"{role.upper()} cannot move a report out of {status.upper()}")


@cli.command()
@click.argument("form_type", type=FORM_TYPES)
@click.argument("role", type=ROLES)
@click.argument("status")
def fields(form_type, role, status):
    """List the fields ROLE may write while a report is in STATUS."""
    schema = get_schema(form_type)
    try:
        writable = schema.writable_fields(role, status)
    except ValueError as e:
        _fail(e)

    if writable:
        for key in writable:
            click.echo(key)
    else:
        click.echo(f"{role.upper()} cannot edit in {status.upper()}")


@cli.command()
@click.argument("form_type", type=FORM_TYPES)
@click.argument("role", type=ROLES)
@click.option("--status", help="Current report status")
@click.option("--phase", type=PHASES, help="Explicit testing phase")
def required(form_type, role, status, phase):
    """List the fields ROLE must fill to save."""
    schema = get_schema(form_type)
    try:
        keys = schema.resolve_required(role, phase=phase, status=status)
    except ValueError as e:
        _fail(e)

    if keys:
        for key in keys:
            click.echo(key)
    else:
        click.echo(f"Nothing is required from {role.upper()}")


# Report commands
@cli.group()
def report():
    """Report lifecycle commands."""
    pass


@report.command(name="create")
@click.argument("form_type", type=FORM_TYPES)
@click.argument("client_code")
@click.option("--role", type=ROLES, default="CLIENT", show_default=True, help="Acting role")
@click.option("--values", callback=_json_object, help="Initial field values as a JSON object")
@click.option("--user-id", type=int, help="ID of the acting user")
def create_report(form_type, client_code, role, values, user_id):
    """Create a draft report for CLIENT_CODE."""
    session = SessionLocal()
    try:
        request = ReportCreate(form_type=form_type.upper(), client_code=client_code, values=values)
        created = report_service.create_draft(
            session, request.form_type, role, request.client_code, request.values, user_id=user_id
        )
        click.echo(f"✅ Report created: {created.form_number} (ID: {created.id})")
    except ValueError as e:
        _fail(e)
    finally:
        session.close()


@report.command(name="show")
@click.argument("report_id", type=int)
@click.option("--role", type=ROLES, help="Also list the statuses ROLE may move the report to")
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")
def show_report(report_id, role, as_json):
    """Show a stored report."""
    session = SessionLocal()
    try:
        stored = report_service.get_report(session, report_id)
        response = ReportResponse.model_validate(stored)
        allowed = report_service.allowed_transitions(stored, role) if role else ()
    except ValueError as e:
        _fail(e)
    finally:
        session.close()

    if as_json:
        _echo_model(response)
        return

    click.echo(f"\n{response.form_number} | {response.form_type.value} | {response.status}")
    click.echo(f"   Version: {response.version}")
    if response.report_number:
        click.echo(f"   Report Number: {response.report_number}")
    for key, value in response.field_values.items():
        click.echo(f"   {key}: {json.dumps(value)}")
    if role:
        click.echo(f"   Next for {role.upper()}: {', '.join(allowed) or 'none'}")


@report.command(name="update")
@click.argument("report_id", type=int)
@click.option("--role", type=ROLES, required=True, help="Acting role")
@click.option("--values", callback=_json_object, required=True, help="Field values as a JSON object")
@click.option("--expected-version", type=int, help="Version last read")
@click.option("--reason", help="Reason for the change")
@click.option("--partial", is_flag=True, help="Save the writable fields and list the rest")
@click.option("--user-id", type=int, help="ID of the acting user")
@click.option("--json", "as_json", is_flag=True, help="Print the outcome as JSON")
def update_report(report_id, role, values, expected_version, reason, partial, user_id, as_json):
    """Save field values on a report."""
    session = SessionLocal()
    try:
        request = FieldUpdateRequest(values=values, expected_version=expected_version, reason=reason)
        result = report_service.update_fields(
            session,
            report_id,
            role,
            request.values,
            expected_version=request.expected_version,
            reason=request.reason,
            user_id=user_id,
            partial=partial,
        )
        response = FieldUpdateResponse(
            report=ReportResponse.model_validate(result.report),
            applied=list(result.applied),
            denied=list(result.denied),
        )
    except ValueError as e:
        _fail(e)
    finally:
        session.close()

    if as_json:
        _echo_model(response)
        return

    click.echo(f"✅ Saved {', '.join(response.applied) or 'nothing'} (version {response.report.version})")
    if response.denied:
        click.echo(f"   Not writable: {', '.join(response.denied)}")


@report.command(name="status")
@click.argument("report_id", type=int)
@click.argument("target_status")
@click.option("--role", type=ROLES, required=True, help="Acting role")
@click.option("--expected-version", type=int, help="Version last read")
@click.option("--reason", help="Reason recorded with the change")
@click.option("--user-id", type=int, help="ID of the acting user")
def change_status(report_id, target_status, role, expected_version, reason, user_id):
    """Move a report to TARGET_STATUS."""
    session = SessionLocal()
    try:
        request = StatusChangeRequest(status=target_status, expected_version=expected_version, reason=reason)
        moved = report_service.change_status(
            session,
            report_id,
            role,
            request.status,
            expected_version=request.expected_version,
            reason=request.reason,
            user_id=user_id,
        )
        click.echo(f"✅ {moved.form_number} moved to {moved.status} (version {moved.version})")
        if moved.report_number:
            click.echo(f"   Report Number: {moved.report_number}")
    except ValueError as e:
        _fail(e)
    finally:
        session.close()


@report.command(name="validate")
@click.argument("report_id", type=int)
@click.option("--role", type=ROLES, required=True, help="Role whose required fields are checked")
@click.option("--phase", type=PHASES, help="Explicit testing phase")
@click.option("--json", "as_json", is_flag=True, help="Print the outcome as JSON")
def validate_report(report_id, role, phase, as_json):
    """Check that ROLE has filled every required field of a report."""
    session = SessionLocal()
    try:
        stored = report_service.get_report(session, report_id)
        result = report_service.validate_report(stored, role, phase=phase)
        response = ValidationResponse.model_validate(result.to_dict())
    except ValueError as e:
        _fail(e)
    finally:
        session.close()

    if as_json:
        _echo_model(response)
    elif response.ok:
        click.echo("✅ All required fields are filled")
    else:
        click.echo(f"❌ Missing: {', '.join(response.errors)}", err=True)
    if not response.ok:
        raise SystemExit(1)


# Correction commands
@cli.group()
def corrections():
    """Correction ledger commands."""
    pass


@corrections.command(name="list")
@click.argument("report_id", type=int)
@click.option("--open-only", is_flag=True, help="Only show open corrections")
@click.option("--json", "as_json", is_flag=True, help="Print the ledger as JSON")
def list_corrections(report_id, open_only, as_json):
    """List the corrections of a report."""
    session = SessionLocal()
    try:
        if open_only:
            items = correction_service.open_corrections(session, report_id)
        else:
            items = correction_service.list_corrections(session, report_id)
        listing = CorrectionListResponse(
            items=[CorrectionItemResponse.model_validate(item) for item in items],
            total=len(items),
            open=sum(1 for item in items if item.status == CorrectionStatus.OPEN),
        )
    except ValueError as e:
        _fail(e)
    finally:
        session.close()

    if as_json:
        _echo_model(listing)
        return

    if not listing.items:
        click.echo("No corrections found.")
        return

    click.echo(f"\nFound {listing.total} corrections ({listing.open} open):\n")
    for item in listing.items:
        click.echo(f"ID: {item.id} | {item.field_key} | {item.status.value}")
        click.echo(f"   {item.message} (by {item.requested_by_role.value})")
        if item.resolution_note:
            click.echo(f"   Resolution: {item.resolution_note}")


def _correction_items(ctx, param, value):
    """Parse repeated FIELD=MESSAGE options."""
    items = []
    for text in value:
        field_key, sep, message = text.partition("=")
        if not sep:
            raise click.BadParameter(f"{text!r} is not FIELD=MESSAGE")
        items.append({"fieldKey": field_key, "message": message})
    return items


@corrections.command(name="add")
@click.argument("report_id", type=int)
@click.option("--role", type=ROLES, required=True, help="Requesting role")
@click.option(
    "--item",
    "items",
    multiple=True,
    required=True,
    metavar="FIELD=MESSAGE",
    callback=_correction_items,
    help="Field to flag and what is wrong with it",
)
@click.option("--target-status", help="Status to move the report to")
@click.option("--reason", help="Reason recorded with the batch")
@click.option("--expected-version", type=int, help="Version last read")
@click.option("--user-id", type=int, help="ID of the acting user")
def add_corrections(report_id, role, items, target_status, reason, expected_version, user_id):
    """Flag fields of a report for correction."""
    session = SessionLocal()
    try:
        request = CreateCorrectionsRequest(
            items=items, target_status=target_status, reason=reason, expected_version=expected_version
        )
        created = correction_service.create_corrections(
            session,
            report_id,
            request.items,
            role,
            target_status=request.target_status,
            reason=request.reason,
            expected_version=request.expected_version,
            user_id=user_id,
        )
        click.echo(f"✅ Raised {len(created)} corrections on report {report_id}")
        for item in created:
            click.echo(f"   ID: {item.id} | {item.field_key}")
    except ValueError as e:
        _fail(e)
    finally:
        session.close()


@corrections.command(name="resolve")
@click.argument("report_id", type=int)
@click.argument("correction_id", type=int)
@click.option("--role", type=ROLES, required=True, help="Resolving role")
@click.option("--note", help="Resolution note")
@click.option("--user-id", type=int, help="ID of the acting user")
def resolve_correction(report_id, correction_id, role, note, user_id):
    """Resolve one open correction."""
    session = SessionLocal()
    try:
        request = ResolveCorrectionRequest(resolution_note=note)
        item = correction_service.resolve_correction(
            session, report_id, correction_id, role, request.resolution_note, user_id=user_id
        )
        click.echo(f"✅ Correction {item.id} resolved ({item.field_key})")
    except ValueError as e:
        _fail(e)
    finally:
        session.close()


if __name__ == "__main__":
    cli()
