"""CLI: mayu preview"""

import json
from typing import Optional

import click

from mayu.config import DEFAULT_WELCOME_MESSAGE, unquote
from mayu.models.member import MemberJoinedNotification
from mayu.notifier import build_welcome_embed


def _snowflake(ctx: click.Context, param: click.Parameter, value: str) -> str:
    if not value.isdigit():
        raise click.BadParameter(f"{value!r} is not a decimal number")
    return value


@click.command("preview")
@click.argument("username")
@click.option("--user-id", required=True, callback=_snowflake, help="Member snowflake id")
@click.option("--avatar", "avatar_hash", default=None, help="Avatar hash, omit for a default avatar")
@click.option("--discriminator", default="0", show_default=True, callback=_snowflake)
@click.option("--message", "template", envvar="WELCOME_MESSAGE", default=DEFAULT_WELCOME_MESSAGE,
              help="Message template; {{USERNAME}} is replaced")
def preview_cmd(username: str, user_id: str, avatar_hash: Optional[str], discriminator: str, template: str):
    """Print the welcome embed JSON for a member, without sending it."""
    member = MemberJoinedNotification(
        username=username, user_id=user_id, avatar_hash=avatar_hash, discriminator=discriminator,
    )
    embed = build_welcome_embed(member, unquote(template))
    click.echo(json.dumps({"embeds": [embed]}, indent=2, ensure_ascii=False))
