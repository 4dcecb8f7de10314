import logging

import typer

from repocheckout.cli.doctor import doctor as doctor_command
from repocheckout.cli.fetch_cmd import fetch as fetch_command
from repocheckout.cli.inspect_cmd import branches as branches_command
from repocheckout.cli.inspect_cmd import default_branch as default_branch_command
from repocheckout.cli.inspect_cmd import working_base as working_base_command

app = typer.Typer(name="repocheckout", help="Retrying git checkout steps for CI")
app.command(name="doctor")(doctor_command)
app.command(name="default-branch")(default_branch_command)
app.command(name="working-base")(working_base_command)
app.command(name="branches")(branches_command)
app.command(name="fetch")(fetch_command)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log git commands and their output"),
) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())


if __name__ == "__main__":
    app()
