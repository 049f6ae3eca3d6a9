"""CLI entrypoint: Typer app definition and command registration"""

import typer

from legalmd.cli.commands import check_cmd, process_cmd


app = typer.Typer(name="legalmd", no_args_is_help=True, help="Legal markdown document processor")

app.command(name="process")(process_cmd)
app.command(name="check")(check_cmd)
