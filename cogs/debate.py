from __future__ import annotations

from typing import Dict, List, Optional

import discord
from discord import app_commands
from discord.ext import commands, tasks

from .debate_commands import (
    IssueChallenge,
    QueryActiveDebates,
    QueryLeaderboard,
    QueryProfile,
    ResolveDebate,
    RespondToChallenge,
)
from .debate_errors import ConcurrencyLimitError, DebateError, NotFoundError
from .debate_lifecycle import DebateController
from .debate_models import Challenge, ContextRef, Debate, RatingChange, UserProfile
from .debate_shared import (
    DEFAULT_DURATION,
    EXPIRY_POLL_SECONDS,
    LEADERBOARD_SIZE,
    MAX_DURATION,
    MIN_DURATION,
    format_delta,
    logger,
)
from .debate_views import ChallengeResponseView

CHALLENGE_COLOR = discord.Color(0xFF6B35)
STARTED_COLOR = discord.Color(0x00FF00)
DECLINED_COLOR = discord.Color(0xFF0000)
INFO_COLOR = discord.Color(0x0099FF)
LEADERBOARD_COLOR = discord.Color(0xFFD700)


class DebateCog(commands.Cog):
    def __init__(self, client: commands.Bot, controller: Optional[DebateController] = None):
        self.client = client
        self.controller = controller or DebateController()
        self.open_views: Dict[str, ChallengeResponseView] = {}

    async def cog_load(self):
        self.expiry_loop.start()

    async def cog_unload(self):
        self.expiry_loop.cancel()
        self.controller.scheduler.clear()
        for view in self.open_views.values():
            view.stop()
        self.open_views.clear()

    @tasks.loop(seconds=EXPIRY_POLL_SECONDS)
    async def expiry_loop(self):
        fired = self.controller.run_due()
        if fired:
            logger.debug("Ran %s scheduled expiry action(s)", fired)
        await self.close_expired_views()

    async def close_expired_views(self) -> None:
        # the view's own timer restarts on every click, so the store decides
        for challenge_id, view in list(self.open_views.items()):
            if challenge_id in self.controller.challenges:
                continue
            self.open_views.pop(challenge_id, None)
            view.stop()
            await view.on_timeout()

    def describe_error(self, error: DebateError, user_id: int) -> str:
        if isinstance(error, ConcurrencyLimitError):
            if error.user_id == user_id:
                return f"You already have {error.limit} active debates. Finish some first!"
            return f"Your opponent already has {error.limit} active debates!"
        if isinstance(error, NotFoundError):
            if error.kind == "challenge":
                return "This challenge has expired or no longer exists!"
            return "Debate not found!"
        return error.message

    async def send_error(self, interaction: discord.Interaction, error: DebateError) -> None:
        await interaction.response.send_message(f"❌ {self.describe_error(error, interaction.user.id)}", ephemeral=True)

    def build_challenge_embed(
        self,
        challenge: Challenge,
        challenger: discord.abc.User,
        opponent: discord.abc.User,
    ) -> discord.Embed:
        challenger_profile = self.controller.get_profile(challenge.challenger_id)
        opponent_profile = self.controller.get_profile(challenge.opponent_id)
        embed = discord.Embed(
            title="🎯 Debate Challenge!",
            description=f"**{challenger.display_name}** has challenged **{opponent.display_name}** to a debate!",
            color=CHALLENGE_COLOR,
            timestamp=challenge.created_at,
        )
        embed.add_field(name="📝 Topic", value=challenge.topic, inline=False)
        embed.add_field(name="⏱️ Duration", value=f"{challenge.duration_minutes} minutes", inline=True)
        embed.add_field(name="🏆 Challenger Rep", value=str(challenger_profile.rating), inline=True)
        embed.add_field(name="🏆 Opponent Rep", value=str(opponent_profile.rating), inline=True)
        embed.set_footer(text=f"Challenge ID: {challenge.id}")
        return embed

    def build_started_embed(self, debate: Debate) -> discord.Embed:
        challenger_id, opponent_id = debate.participant_ids
        embed = discord.Embed(
            title="🔥 Debate Started!",
            description=f"The debate between <@{challenger_id}> and <@{opponent_id}> has begun!",
            color=STARTED_COLOR,
            timestamp=debate.start_time,
        )
        embed.add_field(name="📝 Topic", value=debate.topic, inline=False)
        embed.add_field(name="⏱️ Duration", value=f"{debate.duration_minutes} minutes", inline=True)
        embed.add_field(name="🆔 Debate ID", value=debate.id, inline=True)
        embed.set_footer(text="Use /enddebate to conclude when finished")
        return embed

    def build_declined_embed(self, challenge: Challenge) -> discord.Embed:
        return discord.Embed(
            title="❌ Challenge Declined",
            description=f"<@{challenge.opponent_id}> has declined the debate challenge.",
            color=DECLINED_COLOR,
            timestamp=self.controller.now(),
        )

    def build_profile_embed(self, user: discord.abc.User, profile: UserProfile) -> discord.Embed:
        embed = discord.Embed(title=f"📊 {user.display_name}'s Debate Stats", color=INFO_COLOR, timestamp=self.controller.now())
        embed.set_thumbnail(url=user.display_avatar.url)
        win_rate = profile.win_rate
        embed.add_field(name="🏆 Reputation", value=str(profile.rating), inline=True)
        embed.add_field(name="✅ Wins", value=str(profile.wins), inline=True)
        embed.add_field(name="❌ Losses", value=str(profile.losses), inline=True)
        embed.add_field(name="🎯 Active Debates", value=str(profile.active_debates), inline=True)
        embed.add_field(name="📈 Total Debates", value=str(profile.total_debates), inline=True)
        embed.add_field(name="📊 Win Rate", value=f"{win_rate}%" if win_rate is not None else "N/A", inline=True)
        return embed

    def leaderboard_lines(self, rows) -> List[str]:
        return [
            f"**{index}.** <@{uid}> - **{profile.rating}** rep ({profile.wins}W/{profile.losses}L)"
            for index, (uid, profile) in enumerate(rows, start=1)
        ]

    def active_debate_lines(self, user_id: int, debates: List[Debate]) -> List[str]:
        now = self.controller.now()
        lines = []
        for debate in debates:
            opponent_id = debate.opponent_of(user_id)
            lines.append(
                f"**{debate.id}** - vs <@{opponent_id}>\n📝 {debate.topic}\n⏰ {debate.remaining_minutes(now)} minutes left"
            )
        return lines

    def build_result_embed(self, change: RatingChange) -> discord.Embed:
        embed = discord.Embed(
            title="🎉 Debate Concluded!",
            description=f"**Winner:** <@{change.winner_id}>\n**Topic:** {change.debate.topic}",
            color=STARTED_COLOR,
            timestamp=self.controller.now(),
        )
        embed.add_field(
            name="🏆 Winner Rep Change",
            value=f"{format_delta(change.winner_delta)} ({change.new_winner_rating})",
            inline=True,
        )
        embed.add_field(
            name="📉 Loser Rep Change",
            value=f"{format_delta(-change.loser_delta)} ({change.new_loser_rating})",
            inline=True,
        )
        return embed

    async def handle_challenge_response(self, interaction: discord.Interaction, challenge_id: str, accept: bool):
        try:
            outcome = self.controller.execute(RespondToChallenge(challenge_id, interaction.user.id, accept))
        except DebateError as error:
            return await self.send_error(interaction, error)
        if outcome.accepted:
            content = "✅ Challenge accepted!"
            embed = self.build_started_embed(outcome.debate)
        else:
            content = ""
            embed = self.build_declined_embed(outcome.challenge)
        try:
            await interaction.response.edit_message(content=content, embed=embed, view=None)
        except discord.HTTPException:
            logger.exception("Failed to update challenge message for challenge %s", challenge_id)

    @app_commands.command(name="challenge", description="Challenge another user to a debate")
    @app_commands.describe(
        opponent="The user you want to challenge",
        topic="The debate topic",
        duration=f"Debate duration in minutes ({MIN_DURATION}-{MAX_DURATION})",
    )
    @app_commands.guild_only()
    async def challenge(
        self,
        interaction: discord.Interaction,
        opponent: discord.User,
        topic: str,
        duration: app_commands.Range[int, MIN_DURATION, MAX_DURATION] = DEFAULT_DURATION,
    ):
        context = ContextRef(
            guild_id=interaction.guild.id if interaction.guild else None,
            channel_id=interaction.channel.id if interaction.channel else None,
        )
        try:
            command = IssueChallenge(
                challenger_id=interaction.user.id,
                opponent_id=opponent.id,
                topic=topic,
                duration_minutes=duration,
                opponent_is_bot=opponent.bot,
                context=context,
            )
            challenge = self.controller.execute(command)
        except DebateError as error:
            return await self.send_error(interaction, error)
        embed = self.build_challenge_embed(challenge, interaction.user, opponent)
        view = ChallengeResponseView(self, challenge.id)
        self.open_views[challenge.id] = view
        await interaction.response.send_message(
            content=f"{opponent.mention}, you have been challenged to a debate!",
            embed=embed,
            view=view,
            allowed_mentions=discord.AllowedMentions(users=True),
        )
        try:
            view.message = await interaction.original_response()
        except discord.HTTPException:
            logger.debug("Could not fetch the message for challenge %s", challenge.id)

    @app_commands.command(name="reputation", description="Check reputation and stats")
    @app_commands.describe(user="User to check (defaults to yourself)")
    async def reputation(self, interaction: discord.Interaction, user: Optional[discord.User] = None):
        target = user or interaction.user
        try:
            profile = self.controller.execute(QueryProfile(target.id))
        except DebateError as error:
            return await self.send_error(interaction, error)
        await interaction.response.send_message(embed=self.build_profile_embed(target, profile))

    @app_commands.command(name="leaderboard", description="Show the reputation leaderboard")
    async def leaderboard(self, interaction: discord.Interaction):
        rows = self.controller.execute(QueryLeaderboard(LEADERBOARD_SIZE))
        if not rows:
            return await interaction.response.send_message("📊 No users have debated yet!")
        embed = discord.Embed(
            title="🏆 Debate Leaderboard",
            description="\n".join(self.leaderboard_lines(rows)),
            color=LEADERBOARD_COLOR,
            timestamp=self.controller.now(),
        )
        await interaction.response.send_message(embed=embed)

    @app_commands.command(name="debates", description="List your active debates")
    async def debates(self, interaction: discord.Interaction):
        user_id = interaction.user.id
        active = self.controller.execute(QueryActiveDebates(user_id))
        if not active:
            return await interaction.response.send_message("📝 You have no active debates.", ephemeral=True)
        embed = discord.Embed(
            title="📝 Your Active Debates",
            description="\n\n".join(self.active_debate_lines(user_id, active)),
            color=INFO_COLOR,
            timestamp=self.controller.now(),
        )
        await interaction.response.send_message(embed=embed, ephemeral=True)

    @app_commands.command(name="enddebate", description="End an active debate and declare winner")
    @app_commands.describe(debate_id="The debate ID", winner="The winner of the debate")
    async def enddebate(self, interaction: discord.Interaction, debate_id: str, winner: discord.User):
        try:
            change = self.controller.execute(ResolveDebate(debate_id, interaction.user.id, winner.id))
        except DebateError as error:
            return await self.send_error(interaction, error)
        await interaction.response.send_message(embed=self.build_result_embed(change))

    @app_commands.command(name="debatehelp", description="Get help with debate commands")
    async def debatehelp(self, interaction: discord.Interaction):
        embed = discord.Embed(title="🎯 Debate Bot Help", description="Here are all the available commands:", color=INFO_COLOR)
        embed.add_field(name="/challenge", value="Challenge another user to a debate", inline=False)
        embed.add_field(name="/reputation", value="Check reputation and debate stats", inline=False)
        embed.add_field(name="/leaderboard", value="View the top debaters", inline=False)
        embed.add_field(name="/debates", value="List your active debates", inline=False)
        embed.add_field(name="/enddebate", value="End a debate and declare winner", inline=False)
        embed.add_field(
            name="📋 How it works:",
            value=(
                "1. Challenge someone with `/challenge`\n"
                "2. They can accept or decline\n"
                "3. Debate for the specified duration\n"
                "4. Use `/enddebate` to conclude\n"
                "5. Winner gains reputation points!"
            ),
            inline=False,
        )
        embed.set_footer(text="Reputation uses an ELO-like system - beating higher-rated opponents gives more points!")
        await interaction.response.send_message(embed=embed)


async def setup(client: commands.Bot):
    await client.add_cog(DebateCog(client))
