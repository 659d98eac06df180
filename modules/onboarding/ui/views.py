from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

import discord

if TYPE_CHECKING:
    from modules.onboarding.router import OnboardingRouter

log = logging.getLogger("learnerbot.onboarding.ui.views")

START_ONBOARDING_ID = "start_onboarding"


def channel_url(guild_id: int, channel_id: int) -> str:
    return f"https://discord.com/channels/{guild_id}/{channel_id}"


class StartOnboardingView(discord.ui.View):
    """Welcome DM button; persistent so clicks still route after a restart.

    ``single_use`` views are attached to one welcome DM and stop after the first
    click; later clicks fall through to the view registered with ``add_view``.
    """

    def __init__(
        self,
        router: "OnboardingRouter | None",
        *,
        timeout: Optional[float] = None,
        single_use: bool = False,
    ) -> None:
        super().__init__(timeout=timeout)
        self.router = router
        self.single_use = single_use
        self.add_item(self.StartButton())

    class StartButton(discord.ui.Button):
        def __init__(self) -> None:
            super().__init__(
                label="Start Onboarding",
                style=discord.ButtonStyle.primary,
                custom_id=START_ONBOARDING_ID,
            )

        async def callback(self, interaction: discord.Interaction) -> None:
            router = getattr(self.view, "router", None)
            if router is None:
                log.warning("start button pressed without a router attached")
                return
            try:
                await router.dispatch("button", interaction)
            finally:
                if getattr(self.view, "single_use", False):
                    self.view.stop()


class ChannelLinkView(discord.ui.View):
    def __init__(self, guild_id: int, channel_id: int) -> None:
        super().__init__(timeout=None)
        self.add_item(
            discord.ui.Button(
                label="View Course Channel",
                style=discord.ButtonStyle.link,
                url=channel_url(guild_id, channel_id),
            )
        )
