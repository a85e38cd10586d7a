"""
    Copyright 2024 Inmanta

    Licensed under the Apache License, Version 2.0 (the "License");
    you may not use this file except in compliance with the License.
    You may obtain a copy of the License at

        http://www.apache.org/licenses/LICENSE-2.0

    Unless required by applicable law or agreed to in writing, software
    distributed under the License is distributed on an "AS IS" BASIS,
    WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
    See the License for the specific language governing permissions and
    limitations under the License.

    Contact: code@inmanta.com
"""

"""
Command line client for the BML server. Log messages go to stderr, only the output of the command is written to stdout.
"""

import functools
import logging
import shutil
from typing import Callable, List, Optional, Sequence, TypeVar

import click
import texttable

from bml import const
from bml.client import BmlClient
from bml.config import Config
from bml.exceptions import BmlClientException
from bml.logging import setup_logging
from bml.protocol.responses import BmlResponse

LOGGER = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., None])


class CliContext(object):
    """
    The client is only created when a command needs it, so help works without a server url
    """

    def __init__(self, server_url: Optional[str], user: Optional[str]) -> None:
        self._server_url = server_url
        self._user = user
        self._client: Optional[BmlClient] = None

    @property
    def client(self) -> BmlClient:
        if self._client is None:
            self._client = BmlClient(self._server_url, user=self._user)
        return self._client

    @property
    def user(self) -> str:
        return self.client.user

    def close(self) -> None:
        if self._client is not None:
            self._client.close()


def print_table(header: List[str], rows: List[List[str]]) -> None:
    click.echo(get_table(header, rows))


def get_table(header: List[str], rows: List[List[str]]) -> str:
    """
    Returns a table that would fit in the current terminal.
    """
    width, _ = shutil.get_terminal_size()

    table = texttable.Texttable(max_width=width)
    table.set_deco(texttable.Texttable.HEADER | texttable.Texttable.BORDER | texttable.Texttable.VLINES)
    table.set_cols_dtype(["t"] * len(header))
    table.header(header)
    for row in rows:
        table.add_row(row)
    return table.draw()


def check(response: BmlResponse, operation: str) -> None:
    if not response.is_success:
        raise click.ClickException("%s failed, the server answered with status %s" % (operation, response.status))


def handle_errors(func: F) -> F:
    """
    Report errors of the client as command line errors instead of tracebacks
    """

    @functools.wraps(func)
    def wrapper(*args: object, **kwargs: object) -> None:
        try:
            func(*args, **kwargs)
        except BmlClientException as e:
            LOGGER.debug("Command failed", exc_info=True)
            raise click.ClickException(str(e))

    return wrapper


@click.group(help="Command line client for the BML server")
@click.option("--server-url", help="The url of the gateway of the BML server")
@click.option("--user", "-u", help="The user to act as, the user of the client configuration by default")
@click.option(
    "--config", "-c", "config_file", help="Use this configuration file", type=click.Path(exists=True, dir_okay=False)
)
@click.option("-v", "--verbose", count=True, help="Log more, can be repeated")
@click.pass_context
def cmd(ctx: click.Context, server_url: Optional[str], user: Optional[str], config_file: Optional[str], verbose: int) -> None:
    setup_logging(verbose)
    if config_file is not None:
        Config.load_config(config_file)

    ctx.obj = CliContext(server_url, user)
    ctx.call_on_close(ctx.obj.close)


@cmd.command(help="Upload a file as a new resource")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
@handle_errors
def upload(ctx: CliContext, file: str) -> None:
    response = ctx.client.upload_resource(ctx.user, file)
    check(response, "upload")
    print_table(["Resource ID", "Version"], [[response.resource_id, response.version]])


@cmd.command(help="Upload a file as a new version of a resource")
@click.argument("resource_id")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
@handle_errors
def update(ctx: CliContext, resource_id: str, file: str) -> None:
    response = ctx.client.update_resource(ctx.user, resource_id, file)
    check(response, "update")
    print_table(["Resource ID", "Version"], [[response.resource_id, response.version]])


@cmd.command(help="Download a version of a resource")
@click.argument("resource_id")
@click.option("--version", help="The version to download, the latest version by default")
@click.option("--output", "-o", help="Write the content to this path instead of stdout, e.g. local:///tmp/out.txt")
@click.option("--overwrite", is_flag=True, default=False, help="Replace the output file when it exists")
@click.pass_obj
@handle_errors
def download(ctx: CliContext, resource_id: str, version: Optional[str], output: Optional[str], overwrite: bool) -> None:
    if output is not None:
        response = ctx.client.download_resource(ctx.user, resource_id, version, output, overwrite)
        check(response, "download")
        click.echo("Written to %s" % response.full_file_name, err=True)
        return

    response = ctx.client.download_resource(ctx.user, resource_id, version)
    check(response, "download")
    with response.input_stream as stream:
        shutil.copyfileobj(stream, click.get_binary_stream("stdout"), const.COPY_BUFFER_SIZE)


@cmd.command(help="List the versions of a resource, oldest first")
@click.argument("resource_id")
@click.pass_obj
@handle_errors
def versions(ctx: CliContext, resource_id: str) -> None:
    response = ctx.client.get_versions(ctx.user, resource_id)
    check(response, "getVersions")
    print_table(["Version"], [[v] for v in response.versions])


@cmd.command(help="Delete a resource and all its versions")
@click.argument("resource_id")
@click.pass_obj
@handle_errors
def delete(ctx: CliContext, resource_id: str) -> None:
    check(ctx.client.delete_resource(ctx.user, resource_id), "deleteResource")
    click.echo("Deleted %s" % resource_id, err=True)


@cmd.command(help="Create a new version of a resource with the content of an older version")
@click.argument("resource_id")
@click.argument("version")
@click.pass_obj
@handle_errors
def rollback(ctx: CliContext, resource_id: str, version: str) -> None:
    response = ctx.client.rollback_version(resource_id, version, ctx.user)
    check(response, "rollbackVersion")
    print_table(["Resource ID", "Version"], [[response.resource_id, response.version]])


@cmd.command(help="Copy a resource to a new resource owned by another user")
@click.argument("resource_id")
@click.argument("another_user")
@click.pass_obj
@handle_errors
def copy(ctx: CliContext, resource_id: str, another_user: str) -> None:
    response = ctx.client.copy_resource_to_another_user(resource_id, another_user, ctx.user)
    check(response, "copyResourceToAnotherUser")
    print_table(["Resource ID", "Owner"], [[response.resource_id, another_user]])


@cmd.command(help="Transfer the ownership of a resource")
@click.argument("resource_id")
@click.argument("new_owner")
@click.pass_obj
@handle_errors
def chown(ctx: CliContext, resource_id: str, new_owner: str) -> None:
    check(ctx.client.change_owner_by_resource_id(resource_id, ctx.user, new_owner), "changeOwner")
    click.echo("%s is now owned by %s" % (resource_id, new_owner), err=True)


@cmd.group("project", help="Subcommand to manage projects")
def project() -> None:
    pass


@project.command(name="create", help="Create a new project")
@click.argument("name")
@click.option("--access", "-a", multiple=True, help="A user that can read the resources of the project")
@click.option("--edit", "-e", multiple=True, help="A user that can update the resources of the project")
@click.pass_obj
@handle_errors
def project_create(ctx: CliContext, name: str, access: Sequence[str], edit: Sequence[str]) -> None:
    check(ctx.client.create_bml_project(ctx.user, name, list(access), list(edit)), "createBmlProject")
    click.echo("Created project %s" % name, err=True)


@project.command(name="attach", help="Attach a resource to a project")
@click.argument("name")
@click.argument("resource_id")
@click.pass_obj
@handle_errors
def project_attach(ctx: CliContext, name: str, resource_id: str) -> None:
    check(ctx.client.attach_resource_and_project(name, resource_id), "attachResourceAndProject")
    click.echo("Attached %s to %s" % (resource_id, name), err=True)


@project.command(name="priv", help="Replace the users that can access and edit a project")
@click.argument("name")
@click.option("--access", "-a", multiple=True, help="A user that can read the resources of the project")
@click.option("--edit", "-e", multiple=True, help="A user that can update the resources of the project")
@click.pass_obj
@handle_errors
def project_priv(ctx: CliContext, name: str, access: Sequence[str], edit: Sequence[str]) -> None:
    check(ctx.client.update_project_priv(ctx.user, name, list(edit), list(access)), "updateProjectPriv")
    print_table(["Access", "Edit"], [[", ".join(access), ", ".join(edit)]])


def main() -> None:
    cmd()


if __name__ == "__main__":
    main()
