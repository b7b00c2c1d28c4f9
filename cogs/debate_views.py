from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import discord

from .debate_shared import ACCEPT_PREFIX, CHALLENGE_TIMEOUT, DECLINE_PREFIX, logger

if TYPE_CHECKING:
    from .debate import DebateCog


class ChallengeResponseView(discord.ui.View):
    def __init__(self, cog: "DebateCog", challenge_id: str):
        super().__init__(timeout=CHALLENGE_TIMEOUT.total_seconds())
        self.cog = cog
        self.challenge_id = challenge_id
        self.message: Optional[discord.Message] = None
        self.accept_button = discord.ui.Button(
            style=discord.ButtonStyle.success,
            label="Accept Challenge",
            emoji="✅",
            custom_id=f"{ACCEPT_PREFIX}{challenge_id}",
        )
        self.accept_button.callback = self._on_accept
        self.decline_button = discord.ui.Button(
            style=discord.ButtonStyle.danger,
            label="Decline Challenge",
            emoji="❌",
            custom_id=f"{DECLINE_PREFIX}{challenge_id}",
        )
        self.decline_button.callback = self._on_decline
        self.add_item(self.accept_button)
        self.add_item(self.decline_button)

    def _stop_if_closed(self) -> None:
        if self.challenge_id not in self.cog.controller.challenges:
            self.cog.open_views.pop(self.challenge_id, None)
            self.stop()

    async def _on_accept(self, interaction: discord.Interaction) -> None:
        await self.cog.handle_challenge_response(interaction, self.challenge_id, accept=True)
        self._stop_if_closed()

    async def _on_decline(self, interaction: discord.Interaction) -> None:
        await self.cog.handle_challenge_response(interaction, self.challenge_id, accept=False)
        self._stop_if_closed()

    async def on_timeout(self) -> None:
        self.cog.open_views.pop(self.challenge_id, None)
        self.accept_button.disabled = True
        self.decline_button.disabled = True
        if self.message is None:
            return
        try:
            await self.message.edit(view=self)
        except discord.HTTPException:
            logger.debug("Failed to disable buttons for expired challenge %s", self.challenge_id)
