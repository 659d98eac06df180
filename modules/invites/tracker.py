"""Invite use-count cache used to attribute new members to an invite link.

Discord does not say which invite a member used, so we snapshot every
invite's use-count and diff the snapshot against a fresh fetch on each join.
The diff is best-effort: two members joining through the same link between
fetches can be attributed in either order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional

log = logging.getLogger("learnerbot.invites")

UNKNOWN_CHANNEL = "Unknown"


def _uses(invite: Any) -> int:
    value = getattr(invite, "uses", None)
    return int(value) if value is not None else 0


def _guild_id(guild: Any) -> int:
    return int(getattr(guild, "id"))


def snapshot(invites: Iterable[Any]) -> Dict[str, int]:
    return {str(invite.code): _uses(invite) for invite in invites}


@dataclass(frozen=True)
class InviteAttribution:
    """Where a joining member came from, as far as we can tell."""

    code: Optional[str] = None
    channel_id: Optional[int] = None
    channel_name: str = UNKNOWN_CHANNEL
    inviter: Optional[str] = None

    @property
    def resolved(self) -> bool:
        return self.code is not None

    @classmethod
    def from_invite(cls, invite: Any | None) -> "InviteAttribution":
        if invite is None:
            return cls()
        channel = getattr(invite, "channel", None)
        inviter = getattr(invite, "inviter", None)
        channel_id = getattr(channel, "id", None)
        return cls(
            code=str(invite.code),
            channel_id=int(channel_id) if channel_id is not None else None,
            channel_name=str(getattr(channel, "name", None) or UNKNOWN_CHANNEL),
            inviter=str(inviter) if inviter is not None else None,
        )


class InviteCache:
    """Per-guild mapping of invite code to use-count."""

    def __init__(self) -> None:
        self._guilds: Dict[int, Dict[str, int]] = {}

    def __len__(self) -> int:
        return len(self._guilds)

    def __iter__(self) -> Iterator[int]:
        return iter(self._guilds)

    def get(self, guild_id: int) -> Mapping[str, int] | None:
        return self._guilds.get(guild_id)

    def replace(self, guild_id: int, counts: Mapping[str, int]) -> None:
        self._guilds[guild_id] = dict(counts)

    def upsert(self, guild_id: int, code: str, uses: int) -> None:
        self._guilds.setdefault(guild_id, {})[code] = uses

    def remove(self, guild_id: int, code: str) -> bool:
        counts = self._guilds.get(guild_id)
        if counts is None:
            return False
        return counts.pop(code, None) is not None


async def _fetch_invites(guild: Any) -> list[Any]:
    return list(await guild.invites())


async def refresh_cache(cache: InviteCache, guild: Any) -> bool:
    """Replace the cached counts for ``guild`` with a fresh fetch.

    Returns ``False`` (leaving the old entry untouched) when the fetch fails.
    """

    try:
        invites = await _fetch_invites(guild)
    except Exception as exc:
        log.error(
            "failed to cache invites: %s",
            exc,
            extra={"guild_id": getattr(guild, "id", None), "guild": getattr(guild, "name", None)},
        )
        return False
    cache.replace(_guild_id(guild), snapshot(invites))
    log.info(
        "cached invites",
        extra={"guild_id": _guild_id(guild), "guild": getattr(guild, "name", None), "count": len(invites)},
    )
    return True


def find_used_invite(previous: Mapping[str, int], invites: Iterable[Any]) -> Any | None:
    """Return the first invite whose use-count grew since ``previous``."""

    for invite in invites:
        old = previous.get(str(invite.code))
        if old is not None and _uses(invite) > old:
            return invite
    return None


async def detect_used_invite(cache: InviteCache, guild: Any) -> Any | None:
    """Diff a fresh invite fetch against the cache; ``None`` if undetermined.

    The cache is always updated to the fetched counts, whether or not an
    invite was identified.
    """

    try:
        invites = await _fetch_invites(guild)
    except Exception as exc:
        log.error("failed to detect used invite: %s", exc, extra={"guild_id": getattr(guild, "id", None)})
        return None

    guild_id = _guild_id(guild)
    previous = cache.get(guild_id)
    used = find_used_invite(previous, invites) if previous is not None else None
    cache.replace(guild_id, snapshot(invites))
    if previous is None:
        log.warning("no invite snapshot for guild; attribution undetermined", extra={"guild_id": guild_id})
    return used


def record_created(cache: InviteCache, invite: Any) -> None:
    guild = getattr(invite, "guild", None)
    if guild is None:
        return
    cache.upsert(_guild_id(guild), str(invite.code), _uses(invite))
    log.info("invite created", extra={"code": invite.code, "guild_id": _guild_id(guild)})


def record_deleted(cache: InviteCache, invite: Any) -> None:
    guild = getattr(invite, "guild", None)
    if guild is None:
        return
    if cache.remove(_guild_id(guild), str(invite.code)):
        log.info("invite deleted", extra={"code": invite.code, "guild_id": _guild_id(guild)})


__all__ = [
    "InviteAttribution",
    "InviteCache",
    "detect_used_invite",
    "find_used_invite",
    "record_created",
    "record_deleted",
    "refresh_cache",
    "snapshot",
]
