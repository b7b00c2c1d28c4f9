import os
import platform
import random

import discord
from discord.ext import commands, tasks
from dotenv import load_dotenv

load_dotenv()

TOKEN = os.getenv('TOKEN')


class Client(commands.Bot):
    def __init__(self):
        intents = discord.Intents.default()
        intents.message_content = True
        super().__init__(command_prefix=commands.when_mentioned_or('.'), intents=intents)
        self.cogslist = [
            "cogs.debate",
            "cogs.debate_status",
        ]

    async def setup_hook(self):
        for ext in self.cogslist:
            await self.load_extension(ext)

    async def on_ready(self):
        print(f"Logged in as {self.user.name}")
        print(f"Bot ID: {self.user.id}")
        print(f"Discord Version: {discord.__version__}")
        print(f"Python Version: {platform.python_version()}")
        if not self.status_task.is_running():
            self.status_task.start()
        await self.tree.sync()

    @tasks.loop(seconds=60)
    async def status_task(self):
        phrases = ["/challenge someone to a debate", "/debatehelp for commands"]
        await self.change_presence(activity=discord.Game(name=random.choice(phrases)))


def main():
    if not TOKEN:
        raise SystemExit("TOKEN is not set; add it to the environment or a .env file.")
    Client().run(TOKEN)


if __name__ == "__main__":
    main()
