"""
Reporting layer: question tables, terminal formatting and file export.

Modules
-------
tables     : build_question_table() — critical-first per-question rows.
formatters : ASCII renderers returning strings for ``typer.echo()``.
export     : assessment_to_dict(), export_to_json(), export_to_csv(),
             flatten_reports_for_export().
"""
