import json

import click
from flask import Flask

from .errors import ChecklistError
from .ingest.pipeline import force_reimport, import_workbook, preview_workbook


def register_commands(app: Flask):

    @app.cli.command("import-questions")
    @click.argument("path", type=click.Path(dir_okay=False))
    @click.option("--force", is_flag=True, help="Clear existing questions before importing.")
    def import_questions(path, force):
        """Seed the questions table from a checklist workbook."""
        try:
            result = force_reimport(path) if force else import_workbook(path)
        except ChecklistError as e:
            raise click.ClickException(str(e))
        if result.skipped:
            click.echo("Questions already exist, nothing imported (use --force to replace them).")
            return
        for sheet, count in result.sheets.items():
            click.echo(f"{sheet}: {count} questions")
        for sheet, reason in result.skipped_sheets.items():
            click.echo(f"{sheet}: skipped ({reason})")
        click.echo(f"Imported {result.total_inserted} questions")

    @app.cli.command("preview-questions")
    @click.argument("path", type=click.Path(dir_okay=False))
    def preview_questions(path):
        """Show what an import of PATH would pick up, without writing anything."""
        try:
            preview = preview_workbook(path)
        except ChecklistError as e:
            raise click.ClickException(str(e))
        click.echo(json.dumps(preview, indent=2, ensure_ascii=False, default=str))
