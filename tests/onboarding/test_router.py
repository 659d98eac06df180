import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from modules.onboarding import messages
from modules.onboarding.questions import QUESTIONS
from modules.onboarding.router import EVENT_KINDS, OnboardingRouter
from modules.onboarding.sessions import SessionState
from modules.onboarding.ui.views import START_ONBOARDING_ID
from shared import health as healthmod
from onboarding_fakes import FakeBot, FakeChannel, FakeGuild, FakeMember, invite


def _router(*guilds, finalizer=None):
    bot = FakeBot(*guilds)
    return OnboardingRouter(bot, finalizer=finalizer or MagicMock(finalize=AsyncMock()))


def _dm_message(author, content, *, channel=None, guild=None):
    return SimpleNamespace(author=author, content=content, channel=channel or FakeChannel(), guild=guild)


def _interaction(user_id, *, custom_id=START_ONBOARDING_ID):
    return SimpleNamespace(
        user=SimpleNamespace(id=user_id),
        data={"custom_id": custom_id},
        response=SimpleNamespace(send_message=AsyncMock(), edit_message=AsyncMock()),
        followup=SimpleNamespace(send=AsyncMock()),
    )


def test_every_event_kind_has_a_handler():
    router = _router()

    assert set(router.handlers) == set(EVENT_KINDS)


def test_unknown_event_kind_is_ignored():
    router = _router()

    assert asyncio.run(router.dispatch("reaction_add", object())) is None


def test_handler_errors_are_contained():
    router = _router()

    async def explode(*_args):
        raise RuntimeError("boom")

    router._handlers["ready"] = explode

    assert asyncio.run(router.dispatch("ready")) is None


def test_ready_caches_invites_and_marks_discord_healthy(monkeypatch):
    monkeypatch.setattr(healthmod, "_components", {})
    guild = FakeGuild(invites=[invite("A", 5)])
    router = _router(guild)

    asyncio.run(router.dispatch("ready"))

    assert router.invites.get(7) == {"A": 5}
    assert healthmod.components_snapshot()["discord"]["ok"] is True


def test_member_join_attributes_invite_and_sends_welcome():
    dm = FakeChannel()
    guild = FakeGuild(invites=[invite("A", 5), invite("B", 2, channel_id=501, channel_name="course-b")])
    router = _router(guild)
    asyncio.run(router.dispatch("guild_join", guild))

    guild.set_invites([invite("A", 5), invite("B", 3, channel_id=501, channel_name="course-b")])
    member = FakeMember(42, guild=guild, dm=dm)

    session = asyncio.run(router.dispatch("member_join", member))

    assert session is router.sessions.get(42)
    assert session.channel_name == "course-b"
    assert session.channel_id == 501
    assert session.state is SessionState.CREATED
    assert dm.contents == [messages.WELCOME]
    assert dm.sent[0]["view"].single_use
    assert router.invites.get(7) == {"A": 5, "B": 3}


def test_member_join_without_attribution_uses_unknown_channel():
    dm = FakeChannel()
    guild = FakeGuild(invites=[invite("A", 5)])
    router = _router(guild)

    session = asyncio.run(router.dispatch("member_join", FakeMember(42, guild=guild, dm=dm)))

    assert session.channel_name == "Unknown"
    assert session.channel_id is None


def test_member_join_ignores_bots():
    guild = FakeGuild()
    router = _router(guild)

    asyncio.run(router.dispatch("member_join", FakeMember(99, guild=guild, bot=True, dm=FakeChannel())))

    assert len(router.sessions) == 0


def test_member_join_with_dms_closed_creates_no_session():
    guild = FakeGuild()
    router = _router(guild)

    asyncio.run(router.dispatch("member_join", FakeMember(42, guild=guild, dm=None)))

    assert router.sessions.get(42) is None


def test_failed_welcome_send_discards_session():
    guild = FakeGuild()
    router = _router(guild)

    asyncio.run(router.dispatch("member_join", FakeMember(42, guild=guild, dm=FakeChannel(fail=True))))

    assert router.sessions.get(42) is None


def test_message_without_session_is_ignored():
    router = _router()
    message = _dm_message(SimpleNamespace(id=42, bot=False), "hello")

    asyncio.run(router.dispatch("direct_message", message))

    assert message.channel.sent == []


def test_message_before_start_is_ignored():
    router = _router()
    router.sessions.create(user_id=42, username="learner", guild_id=7)
    message = _dm_message(SimpleNamespace(id=42, bot=False), "Jane Doe")

    asyncio.run(router.dispatch("direct_message", message))

    session = router.sessions.get(42)
    assert message.channel.sent == []
    assert session.step_index == 0 and session.data == {}


def test_guild_and_bot_messages_are_ignored():
    router = _router()
    session = router.sessions.create(user_id=42, username="learner", guild_id=7)
    session.transition(SessionState.IN_PROGRESS)

    guild_message = _dm_message(SimpleNamespace(id=42, bot=False), "Jane Doe", guild=object())
    bot_message = _dm_message(SimpleNamespace(id=42, bot=True), "Jane Doe")
    asyncio.run(router.dispatch("direct_message", guild_message))
    asyncio.run(router.dispatch("direct_message", bot_message))

    assert session.step_index == 0
    assert guild_message.channel.sent == [] and bot_message.channel.sent == []


def test_button_without_session_replies_ephemerally():
    router = _router()
    interaction = _interaction(42)

    asyncio.run(router.dispatch("button", interaction))

    interaction.response.send_message.assert_awaited_once_with(messages.SESSION_NOT_FOUND, ephemeral=True)


def test_button_with_other_custom_id_is_ignored():
    router = _router()
    interaction = _interaction(42, custom_id="something_else")

    asyncio.run(router.dispatch("button", interaction))

    interaction.response.send_message.assert_not_awaited()


def test_button_starts_flow_once():
    router = _router()
    router.sessions.create(user_id=42, username="learner", guild_id=7)
    interaction = _interaction(42)

    asyncio.run(router.dispatch("button", interaction))

    assert router.sessions.get(42).state is SessionState.IN_PROGRESS
    interaction.response.edit_message.assert_awaited_once_with(view=None)
    interaction.followup.send.assert_awaited_once_with(QUESTIONS[0].prompt)

    again = _interaction(42)
    asyncio.run(router.dispatch("button", again))
    again.response.send_message.assert_awaited_once_with(messages.ALREADY_STARTED, ephemeral=True)


def test_button_after_answers_were_submitted_does_not_ask_for_more():
    router = _router()
    session = router.sessions.create(user_id=42, username="learner", guild_id=7)
    session.transition(SessionState.IN_PROGRESS)
    session.transition(SessionState.COMPLETE)
    interaction = _interaction(42)

    asyncio.run(router.dispatch("button", interaction))

    interaction.response.send_message.assert_awaited_once_with(messages.ALREADY_SUBMITTED, ephemeral=True)
    interaction.followup.send.assert_not_awaited()


def test_full_dm_conversation_reaches_finalizer():
    finalizer = MagicMock(finalize=AsyncMock())
    router = _router(finalizer=finalizer)
    router.sessions.create(user_id=42, username="learner", guild_id=7)
    asyncio.run(router.dispatch("button", _interaction(42)))
    author = SimpleNamespace(id=42, bot=False)
    channel = FakeChannel()

    for text in ("J", "Jane Doe", "jane@example.com", "98765 43210"):
        asyncio.run(router.dispatch("direct_message", _dm_message(author, text, channel=channel)))

    assert channel.contents == [QUESTIONS[0].error, QUESTIONS[1].prompt, QUESTIONS[2].prompt]
    session = router.sessions.get(42)
    assert session.state is SessionState.COMPLETE
    finalizer.finalize.assert_awaited_once_with(session, channel)


def test_response_error_is_reported_to_user():
    router = _router()
    session = router.sessions.create(user_id=42, username="learner", guild_id=7)
    session.transition(SessionState.IN_PROGRESS)

    class _FlakyChannel(FakeChannel):
        async def send(self, content=None, **kwargs):
            if content != messages.RESPONSE_ERROR:
                raise RuntimeError("rate limited")
            await super().send(content, **kwargs)

    channel = _FlakyChannel()
    message = _dm_message(SimpleNamespace(id=42, bot=False), "Jane Doe", channel=channel)
    asyncio.run(router.dispatch("direct_message", message))

    assert channel.contents == [messages.RESPONSE_ERROR]


def test_invite_create_and_delete_update_cache():
    router = _router()
    guild = SimpleNamespace(id=7)
    created = SimpleNamespace(code="NEW", uses=0, guild=guild)

    asyncio.run(router.dispatch("invite_create", created))
    assert router.invites.get(7) == {"NEW": 0}

    asyncio.run(router.dispatch("invite_delete", created))
    assert router.invites.get(7) == {}
