"""CLI commands for importing and exporting quiz overrides."""

from __future__ import annotations

import datetime
from pathlib import Path

from sqlalchemy.orm import Session

import quizoverride.lib.cli as click
import quizoverride.lib.json as json
from quizoverride import storage
from quizoverride.core import di
from quizoverride.importer import batch, export_overrides, OverrideImportError
from quizoverride.model import ImportID, ImportMode, ImportPreview

Delimiter = click.Choice(["comma", "semicolon", "colon", "tab"])


@click.group("override")
def override():
    """Bulk import quiz overrides from delimited text files."""
    ...


def echo_preview(preview: ImportPreview) -> None:
    if preview.header_error:
        click.echo(click.style(preview.header_error, fg="red"), err=True)
        return

    label = f"Import {preview.import_id}" if preview.import_id else "Preview"
    click.echo(f"{label}: quiz {preview.quiz_id}, {preview.mode.value} overrides, {len(preview.rows)} row(s)")
    for row in preview.rows:
        colour = "red" if row.has_errors else "green"
        subject = row.cells.get(preview.mode.id_field, "")
        click.echo(f"  row {row.csv_row:>4}  {click.style(row.action.value, fg=colour):<16} {preview.mode.id_field}={subject}")
        if row.generate:
            click.echo(f"        generated password: {row.override.password}")
        for column, message in row.errors.items():
            click.echo(click.style(f"        {column}: {message}", fg="red"))

    if preview.is_empty:
        click.echo("Nothing to import.")
    elif preview.can_import and preview.import_id:
        click.echo(f"Ready to import; confirm with: override commit {preview.import_id}")
    elif not preview.can_import:
        click.echo(click.style("Fix the errors above and upload the file again.", fg="yellow"))


def _output(preview: ImportPreview, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps(preview, indent=2))
    else:
        echo_preview(preview)


@override.command("preview")
@click.argument("quiz_id", type=int)
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--mode", "-m", type=click.EnumType(ImportMode), default=ImportMode.User, show_default=True)
@click.option("--delimiter", "-d", type=Delimiter, default=None, help="defaults to importer.delimiter")
@click.option("--encoding", "-e", default=None, help="defaults to importer.encoding")
@click.option("--json", "as_json", is_flag=True, default=False, help="print the preview as JSON")
@di.inject
def override_preview(
    quiz_id: int,
    file: Path,
    mode: ImportMode,
    delimiter: str | None,
    encoding: str | None,
    as_json: bool,
    session: Session = di.Provide["storage.persistent.session"],
) -> int:
    """Validate FILE against QUIZ_ID and stage it for commit.

    Nothing is written to the overrides until `override commit` is run with
    the import id printed here.
    """
    try:
        preview = batch.stage(
            file.read_bytes(),
            quiz_id=quiz_id,
            mode=mode,
            delimiter=delimiter,
            encoding=encoding,
            session=session,
        )
    except OverrideImportError as e:
        raise click.ClickException(str(e)) from e
    finally:
        session.close()

    _output(preview, as_json)
    return 0 if preview.processed else 1


@override.command("show")
@click.argument("import_id", type=click.KeyType(ImportID))
@click.option("--json", "as_json", is_flag=True, default=False, help="print the preview as JSON")
@di.inject
def override_show(
    import_id: ImportID,
    as_json: bool,
    session: Session = di.Provide["storage.persistent.session"],
) -> int:
    """Validate a staged import again and show what committing it would do."""
    try:
        preview = batch.preview(import_id, session=session)
    except OverrideImportError as e:
        raise click.ClickException(str(e)) from e
    finally:
        session.close()

    _output(preview, as_json)
    return 0


@override.command("commit")
@click.argument("import_id", type=click.KeyType(ImportID))
@di.inject
def override_commit(
    import_id: ImportID,
    session: Session = di.Provide["storage.persistent.session"],
) -> int:
    """Apply a staged import in a single transaction."""
    try:
        result = batch.confirm(import_id, session=session)
    except OverrideImportError as e:
        raise click.ClickException(str(e)) from e
    finally:
        session.close()

    if not result.success:
        click.echo(click.style(f"Import failed, nothing was changed: {result.error}", fg="red"), err=True)
        return 1
    click.echo(f"Imported overrides: {result.inserted} inserted, {result.updated} updated, {result.deleted} deleted")
    return 0


@override.command("discard")
@click.argument("import_id", type=click.KeyType(ImportID))
@di.inject
def override_discard(
    import_id: ImportID,
    session: Session = di.Provide["storage.persistent.session"],
) -> int:
    """Drop a staged import without applying it."""
    try:
        batch.discard(import_id, session=session)
    except OverrideImportError as e:
        raise click.ClickException(str(e)) from e
    finally:
        session.close()

    click.echo(f"Discarded {import_id}")
    return 0


@override.command("purge")
@click.option("--older-than", type=click.IntRange(min=0), default=None, help="hours; defaults to importer.batch_ttl_hours")
@di.inject
def override_purge(
    older_than: int | None,
    session: Session = di.Provide["storage.persistent.session"],
) -> int:
    """Drop staged imports that were never committed."""
    try:
        count = batch.purge(
            datetime.timedelta(hours=older_than) if older_than is not None else None,
            session=session,
        )
    finally:
        session.close()

    click.echo(f"Purged {count} staged import(s)")
    return 0


@override.command("export")
@click.argument("quiz_id", type=int)
@click.option("--mode", "-m", type=click.EnumType(ImportMode), default=ImportMode.User, show_default=True)
@click.option("--delimiter", "-d", type=Delimiter, default="comma", show_default=True)
@click.option("--template", is_flag=True, default=False, help="write only the header")
@click.option("--output", "-O", type=click.Path(dir_okay=False, writable=True, path_type=Path), default=None)
@di.inject
def override_export(
    quiz_id: int,
    mode: ImportMode,
    delimiter: str,
    template: bool,
    output: Path | None,
    session: Session = di.Provide["storage.persistent.session"],
) -> int:
    """Write the overrides of QUIZ_ID in the import format.

    The file can be edited and imported again.
    """
    try:
        with session.begin():
            quiz = storage.quiz.get(quiz_id, session=session)
        if quiz is None:
            raise click.ClickException(f"Quiz {quiz_id} does not exist")
        text = export_overrides(quiz, mode, template=template, delimiter=delimiter, session=session)
    finally:
        session.close()

    if output is None:
        click.echo(text, nl=False)
    else:
        output.write_text(text, encoding="utf-8")
        click.echo(f"Wrote {output}")
    return 0
