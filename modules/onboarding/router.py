"""Event router: maps gateway events onto invite tracking and onboarding.

All mutable state (invite snapshots, sessions) hangs off the router instance,
so tests can build an isolated router per case with fake guilds and members.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from modules.invites import tracker
from modules.invites.tracker import InviteAttribution, InviteCache
from modules.onboarding import messages, sessions as flow
from modules.onboarding.finalize import Finalizer
from modules.onboarding.sessions import OnboardingSession, SessionState, SessionStore
from modules.onboarding.ui.views import START_ONBOARDING_ID, StartOnboardingView
from shared import health as healthmod
from shared.logging import set_trace_id

log = logging.getLogger("learnerbot.onboarding.router")

Handler = Callable[..., Awaitable[Any]]

EVENT_KINDS = (
    "ready",
    "guild_join",
    "invite_create",
    "invite_delete",
    "member_join",
    "button",
    "direct_message",
)


class OnboardingRouter:
    def __init__(
        self,
        bot: Any,
        *,
        invites: InviteCache | None = None,
        sessions: SessionStore | None = None,
        finalizer: Finalizer | None = None,
    ) -> None:
        self.bot = bot
        self.invites = invites if invites is not None else InviteCache()
        self.sessions = sessions if sessions is not None else SessionStore()
        self.finalizer = finalizer or Finalizer(bot, self.sessions)
        self._handlers: Dict[str, Handler] = {
            "ready": self.on_ready,
            "guild_join": self.on_guild_join,
            "invite_create": self.on_invite_create,
            "invite_delete": self.on_invite_delete,
            "member_join": self.on_member_join,
            "button": self.on_button,
            "direct_message": self.on_direct_message,
        }

    @property
    def handlers(self) -> Dict[str, Handler]:
        return dict(self._handlers)

    async def dispatch(self, kind: str, *args: Any) -> Any:
        """Run the handler for ``kind``; handler errors are logged, never raised."""

        handler = self._handlers.get(kind)
        if handler is None:
            log.warning("no handler for event kind", extra={"kind": kind})
            return None
        set_trace_id()
        try:
            return await handler(*args)
        except Exception:
            log.exception("event handler failed", extra={"kind": kind})
            return None

    # --- guild / invite lifecycle -------------------------------------------

    async def on_ready(self) -> None:
        healthmod.set_component("discord", True)
        guilds = list(getattr(self.bot, "guilds", []) or [])
        log.info(
            "onboarding bot online",
            extra={"bot_user": str(getattr(self.bot, "user", "")), "guild_count": len(guilds)},
        )
        for guild in guilds:
            await tracker.refresh_cache(self.invites, guild)
        log.info("ready to onboard new members")

    async def on_guild_join(self, guild: Any) -> None:
        log.info("joined new guild", extra={"guild": getattr(guild, "name", None)})
        await tracker.refresh_cache(self.invites, guild)

    async def on_invite_create(self, invite: Any) -> None:
        tracker.record_created(self.invites, invite)

    async def on_invite_delete(self, invite: Any) -> None:
        tracker.record_deleted(self.invites, invite)

    # --- onboarding ---------------------------------------------------------

    async def on_member_join(self, member: Any) -> Optional[OnboardingSession]:
        if getattr(member, "bot", False):
            return None
        log.info("new member joined", extra={"user_id": member.id, "username": str(member)})

        used = await tracker.detect_used_invite(self.invites, member.guild)
        attribution = InviteAttribution.from_invite(used)
        if attribution.resolved:
            log.info(
                "invite attributed",
                extra={
                    "code": attribution.code,
                    "channel": attribution.channel_name,
                    "channel_id": attribution.channel_id,
                    "inviter": attribution.inviter,
                },
            )
        else:
            log.warning("could not detect which invite was used", extra={"user_id": member.id})

        return await self.begin_onboarding(member, attribution)

    async def begin_onboarding(
        self, member: Any, attribution: InviteAttribution
    ) -> Optional[OnboardingSession]:
        try:
            dm = await member.create_dm()
        except Exception as exc:
            log.error(
                "could not open DM; DMs may be disabled: %s", exc, extra={"user_id": member.id}
            )
            return None

        session = self.sessions.create(
            user_id=member.id,
            username=str(member),
            guild_id=member.guild.id,
            channel_name=attribution.channel_name,
            channel_id=attribution.channel_id,
        )
        try:
            await dm.send(content=messages.WELCOME, view=StartOnboardingView(self, single_use=True))
        except Exception as exc:
            log.error("failed to send welcome DM: %s", exc, extra={"user_id": member.id})
            self.sessions.discard(member.id, expected=session)
            return None

        log.info("onboarding session started", extra={"user_id": member.id})
        return session

    async def on_button(self, interaction: Any) -> None:
        custom_id = (getattr(interaction, "data", None) or {}).get("custom_id")
        if custom_id != START_ONBOARDING_ID:
            return

        user = interaction.user
        session = self.sessions.get(user.id)
        if session is None:
            await interaction.response.send_message(messages.SESSION_NOT_FOUND, ephemeral=True)
            return
        if session.state is SessionState.IN_PROGRESS:
            await interaction.response.send_message(messages.ALREADY_STARTED, ephemeral=True)
            return
        if session.state is not SessionState.CREATED:
            await interaction.response.send_message(messages.ALREADY_SUBMITTED, ephemeral=True)
            return

        prompt = flow.start(session)
        await interaction.response.edit_message(view=None)
        await interaction.followup.send(prompt)
        log.info("start onboarding clicked", extra={"user_id": user.id})

    async def on_direct_message(self, message: Any) -> None:
        author = message.author
        if getattr(author, "bot", False) or message.guild is not None:
            return
        session = self.sessions.get(author.id)
        if session is None or session.state is not SessionState.IN_PROGRESS:
            return

        try:
            outcome = flow.advance(session, message.content or "")
            if outcome.reply:
                await message.channel.send(outcome.reply)
            if outcome.completed:
                await self.finalizer.finalize(session, message.channel)
        except Exception:
            log.exception("error handling onboarding response", extra={"user_id": author.id})
            try:
                await message.channel.send(messages.RESPONSE_ERROR)
            except Exception:
                log.warning("failed to send onboarding error notice", exc_info=True)


__all__ = ["EVENT_KINDS", "OnboardingRouter"]
