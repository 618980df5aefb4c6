from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from .util import configure_stdio, set_global_config_file, set_global_verbose

app = typer.Typer(help="mapctx: map layer catalog and context configuration")


@app.callback()
def _init(
    config_file: Optional[Path] = typer.Option(
        None,
        "--config-file",
        help="Path to config file (overrides .mapctx/config.toml)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    configure_stdio()
    set_global_verbose(verbose)
    set_global_config_file(config_file)


from .commands import config_cmd as config_cmd  # noqa: E402
from .commands import document as document_cmd  # noqa: E402
from .commands import edit as edit_cmd  # noqa: E402
from .commands import versions as versions_cmd  # noqa: E402

app.command(name="validate")(document_cmd.validate)
app.command(name="schema")(document_cmd.schema)
app.command(name="tree")(document_cmd.tree)
app.command(name="times")(document_cmd.times)
app.command(name="layers")(document_cmd.layers)
app.add_typer(edit_cmd.group_app, name="group", help="Group operations")
app.add_typer(edit_cmd.context_app, name="context", help="Context operations")
app.add_typer(edit_cmd.item_app, name="item", help="Operations on groups and contexts")
app.add_typer(versions_cmd.app, name="versions", help="Backup versions")
app.add_typer(config_cmd.app, name="config", help="Configuration inspection and setup")


def main():
    app()
