"""Completion step: verify the learner, record them, and grant access."""

from __future__ import annotations

import enum
import logging
from typing import Any, Awaitable, Callable, Optional

import discord

from modules.onboarding import messages
from modules.onboarding.allowlist import VerificationResult, verify_paid_learner
from modules.onboarding.sessions import OnboardingSession, SessionState, SessionStore
from modules.onboarding.sheet_logging import log_sheet_write
from modules.onboarding.ui.views import ChannelLinkView
from shared.config import get_learner_role_name
from shared.redaction import mask_email, mask_phone
from shared.sheets.learners import LearnerSheetRecord, aappend_learner_row

log = logging.getLogger("learnerbot.onboarding.finalize")

RecordSink = Callable[[LearnerSheetRecord], Awaitable[Optional[str]]]
Verifier = Callable[[str], VerificationResult]


class FinalizeResult(enum.Enum):
    COMPLETED = "completed"
    REJECTED = "rejected"
    FAILED = "failed"


class FinalizeError(RuntimeError):
    """Raised for lookups that make the current attempt impossible."""


class Finalizer:
    def __init__(
        self,
        bot: Any,
        sessions: SessionStore,
        *,
        record_sink: RecordSink | None = None,
        verifier: Verifier | None = None,
        role_name: Callable[[], str] | None = None,
    ) -> None:
        self.bot = bot
        self.sessions = sessions
        self.record_sink = record_sink or aappend_learner_row
        self.verifier = verifier or verify_paid_learner
        self._role_name = role_name or get_learner_role_name

    async def finalize(self, session: OnboardingSession, channel: Any) -> FinalizeResult:
        """Run verification and side effects for a completed session.

        Rejected sessions are discarded. Failures after verification keep the
        session in the store so the collected answers are not lost.
        """

        if session.state is not SessionState.COMPLETE:
            raise FinalizeError(f"session for {session.user_id} is {session.state.value}, not complete")

        try:
            await channel.send(messages.PROCESSING)

            email = session.data.get("email", "")
            verification = self.verifier(email)
            if not verification.is_verified:
                log.info(
                    "access denied: not a paid learner",
                    extra={"user_id": session.user_id, "email": mask_email(email)},
                )
                await channel.send(messages.REJECTED)
                self.sessions.discard(session.user_id, expected=session)
                return FinalizeResult.REJECTED

            await self._complete(session, channel)
        except Exception:
            log.exception(
                "error finalizing onboarding; session kept for manual follow-up",
                extra={"user_id": session.user_id},
            )
            try:
                await channel.send(messages.FINALIZE_ERROR)
            except Exception:
                log.warning("failed to notify user about finalize error", exc_info=True)
            return FinalizeResult.FAILED

        return FinalizeResult.COMPLETED

    async def _complete(self, session: OnboardingSession, channel: Any) -> None:
        record = LearnerSheetRecord(
            name=session.data.get("name", ""),
            email=session.data.get("email", ""),
            phone=session.data.get("phone", ""),
            username=session.username,
            channel=session.channel_name,
        )
        await log_sheet_write(
            phase="finalize",
            write_coro=lambda: self.record_sink(record),
            channel=session.channel_name,
            user=session.username,
        )

        guild = self.bot.get_guild(session.guild_id)
        if guild is None:
            raise FinalizeError(f"guild {session.guild_id} not found")
        member = await guild.fetch_member(session.user_id)
        if member is None:
            raise FinalizeError(f"member {session.user_id} not found")

        role_name = self._role_name()
        await self._grant_role(guild, member, role_name)
        if session.channel_id is not None:
            await self._grant_channel(guild, member, session.channel_id)

        if session.channel_id is not None:
            await channel.send(
                content=f"{messages.confirmation(role_name)}\n\n{messages.CHANNEL_LINK_HINT}",
                view=ChannelLinkView(session.guild_id, session.channel_id),
            )
        else:
            await channel.send(messages.confirmation(role_name))

        log.info(
            "onboarding completed",
            extra={
                "user_id": session.user_id,
                "username": session.username,
                "email": mask_email(record.email),
                "phone": mask_phone(record.phone),
                "channel": session.channel_name,
            },
        )
        self.sessions.discard(session.user_id, expected=session)

    async def _grant_role(self, guild: Any, member: Any, role_name: str) -> None:
        role = discord.utils.get(guild.roles, name=role_name)
        if role is None:
            log.warning(
                "learner role not found", extra={"role": role_name, "guild": getattr(guild, "name", None)}
            )
            return
        try:
            await member.add_roles(role, reason="Learner onboarding completed")
        except Exception:
            log.warning("failed to assign learner role", exc_info=True, extra={"role": role_name})
            return
        log.info("assigned learner role", extra={"role": role_name, "user_id": member.id})

    async def _grant_channel(self, guild: Any, member: Any, channel_id: int) -> None:
        target = guild.get_channel(channel_id)
        if target is None:
            log.warning("course channel not found in guild", extra={"channel_id": channel_id})
            return
        try:
            await target.set_permissions(
                member,
                view_channel=True,
                send_messages=True,
                read_message_history=True,
                reason="Learner onboarding completed",
            )
        except Exception:
            log.warning(
                "failed to grant channel access", exc_info=True, extra={"channel_id": channel_id}
            )
            return
        log.info("granted channel access", extra={"channel_id": channel_id, "user_id": member.id})

        try:
            await target.send(messages.channel_welcome(member.id))
        except Exception:
            log.warning(
                "failed to post channel welcome", exc_info=True, extra={"channel_id": channel_id}
            )


__all__ = ["FinalizeError", "FinalizeResult", "Finalizer"]
