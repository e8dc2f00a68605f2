"""CLI tools for recruitment form administration."""

import json
import uuid

import click

from app.core.security import create_session_token
from app.core.structured_logging import configure_logging
from app.db.enums import Role
from app.db.session import SessionLocal
from app.schemas.forms import SubmissionRead
from app.services import form_schema_service, form_service, form_submission_service, response_aggregator


@click.group()
def cli():
    """Recruitment forms CLI tools."""
    configure_logging()


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def validate_schema(path: str):
    """
    Check a form definition (JSON) before publishing it.

    Exits non-zero when the definition has errors.

    Example:
        python -m app.cli validate-schema ./volunteer_form.json
    """
    with open(path, encoding="utf-8") as f:
        try:
            payload = json.load(f)
        except json.JSONDecodeError as e:
            click.echo(f"❌ Not valid JSON: {e}")
            raise SystemExit(1)

    if not isinstance(payload, dict):
        click.echo("❌ Form definition must be a JSON object")
        raise SystemExit(1)

    errors = form_schema_service.validate_schema_payload(payload)
    if not errors:
        click.echo("✓ Form definition is valid")
        return

    for error in errors:
        where = f" [{error.field_id}]" if error.field_id else ""
        click.echo(f"❌ {error.code}{where}: {error.message}")
    raise SystemExit(1)


@cli.command()
@click.option("--form-id", required=True, type=click.UUID, help="Form to export")
@click.option("--out", "out_path", default=None, help="Output file (defaults to <title>_responses.csv)")
def export_responses(form_id: uuid.UUID, out_path: str | None):
    """
    Write every response to a form as CSV.

    Example:
        python -m app.cli export-responses --form-id "…" --out responses.csv
    """
    db = SessionLocal()
    try:
        form = form_service.get_form(db, form_id)
        if not form:
            click.echo(f"❌ Form not found: {form_id}")
            raise SystemExit(1)

        fields = form_service.form_fields(form)
        submissions = [
            SubmissionRead.model_validate(s)
            for s in form_submission_service.list_all_for_form(db, form.id, limit=0)
        ]
        out_path = out_path or response_aggregator.csv_filename((form.title or {}).get("en", ""))
        with open(out_path, "w", encoding="utf-8", newline="") as f:
            for chunk in response_aggregator.stream_csv(fields, submissions):
                f.write(chunk)

        click.echo(f"✓ Exported {len(submissions)} response(s) to {out_path}")
    finally:
        db.close()


@cli.command()
@click.option("--email", required=True, help="Console user email")
@click.option(
    "--role",
    type=click.Choice([r.value for r in Role]),
    default=Role.EDITOR.value,
    show_default=True,
)
@click.option("--user-id", type=click.UUID, default=None, help="Existing user id (random if omitted)")
def issue_token(email: str, role: str, user_id: uuid.UUID | None):
    """
    Print a console session token, for local use and scripted access.

    Example:
        python -m app.cli issue-token --email "admin@example.com" --role admin
    """
    token = create_session_token(user_id or uuid.uuid4(), role, email.strip().lower())
    click.echo(token)


if __name__ == "__main__":
    cli()
