#!/usr/bin/env python3
"""Print the OAuth2 URL that adds the onboarding bot to a server."""

from __future__ import annotations

import argparse
import os
import sys

import discord

DEFAULT_CLIENT_ID = "1436626187890983113"
# Manage Channels, Add Reactions, View Channels, Send Messages, Manage Messages,
# Read Message History and Manage Roles.
DEFAULT_PERMISSIONS = 268512336

INSTRUCTIONS = """
📋 Instructions:
1. Copy the URL above
2. Paste it in your browser
3. Select your Discord server
4. Authorize the bot with the required permissions
5. Make sure to enable these Gateway Intents in the Discord Developer Portal:
   - SERVER MEMBERS INTENT (required!)
   - MESSAGE CONTENT INTENT (required!)
   - PRESENCE INTENT (optional)

✅ After adding the bot, it will start onboarding new members!
"""


def build_invite_url(client_id: str, permissions: int = DEFAULT_PERMISSIONS) -> str:
    return discord.utils.oauth_url(
        client_id,
        permissions=discord.Permissions(permissions),
        scopes=("bot",),
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--client-id",
        default=os.getenv("DISCORD_CLIENT_ID") or DEFAULT_CLIENT_ID,
        help="Application client id (default: $DISCORD_CLIENT_ID)",
    )
    parser.add_argument(
        "--permissions",
        type=int,
        default=DEFAULT_PERMISSIONS,
        help=f"Permission integer (default: {DEFAULT_PERMISSIONS})",
    )
    parser.add_argument("--quiet", action="store_true", help="Print only the URL")
    args = parser.parse_args(argv)

    url = build_invite_url(str(args.client_id).strip(), args.permissions)
    if args.quiet:
        sys.stdout.write(url + "\n")
        return 0
    sys.stdout.write("\n🔗 Discord Bot Invite URL:\n\n")
    sys.stdout.write(url + "\n")
    sys.stdout.write(INSTRUCTIONS + "\n")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
