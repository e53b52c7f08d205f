# Source and GoldSource server status, queried over A2S and shown in Discord

import discord
from discord.ext import commands
import logging
import os
from datetime import datetime
from pathlib import Path

from utils import Config
config = Config()

intents = discord.Intents.default()
intents.message_content = True

def command_prefix(bot, msg):
    prefix = config.get("command_prefix")
    return (prefix, prefix.upper())


class Bot(commands.Bot):
    async def setup_hook(self):
        # Load all cogs
        for cog in os.listdir(Path("./cogs")):
            if cog.endswith(".py"):
                try:
                    cog = f"cogs.{cog.replace('.py', '')}"
                    await self.load_extension(cog)
                except Exception:
                    logging.critical('%s can not be loaded', cog)
                    raise

bot = Bot(intents=intents, command_prefix=command_prefix, case_insensitive=True)
bot.remove_command('help')

@bot.group(invoke_without_command=True, aliases=['cog'])
@commands.is_owner()
async def module(ctx):
    await ctx.send(f"**Available Operations**\n{ctx.prefix}cog reload [cog]\n{ctx.prefix}cog enable <cog>\n{ctx.prefix}cog disable <cog>")

@module.command(aliases=["load"])
@commands.is_owner()
async def enable(ctx, cog: str):
    """ Enable a cog """
    cog = cog.lower()
    if os.path.exists(Path(f"./cogs/{cog}.py")):
        await bot.load_extension(f"cogs.{cog}")
        await ctx.send(f"Enabled {cog}")
    else:
        await ctx.send(f"{cog} doesn't exist")

@module.command(aliases=["unload"])
@commands.is_owner()
async def disable(ctx, cog: str):
    """ Disable a cog """
    cog = cog.lower()
    if os.path.exists(Path(f"./cogs/{cog}.py")):
        await bot.unload_extension(f"cogs.{cog}")
        await ctx.send(f"Disabled {cog}")
    else:
        await ctx.send(f"{cog} doesn't exist")

@module.command()
@commands.is_owner()
async def reload(ctx, cog: str = None):
    """ Reload cogs """

    async def reload_cog(ctx, cog):
        """ Reloads a cog """
        try:
            await bot.reload_extension(f"cogs.{cog}")
            await ctx.send(f"Reloaded {cog}")
        except commands.ExtensionError as e:
            await ctx.send(f"Couldn't reload {cog}, " + str(e))

    if not cog:
        for cog in os.listdir(Path("./cogs")):
            if cog.endswith(".py"):
                cog = cog.replace(".py", "")
                await reload_cog(ctx, cog)
    else:
        if os.path.exists(Path(f"./cogs/{cog}.py")):
            await reload_cog(ctx, cog)
        else:
            await ctx.send(f"{cog} doesn't exist")


if __name__ == '__main__':
    # Setup logger
    log_directory = Path(config.get("log_directory"))
    log_directory.mkdir(exist_ok=True)
    logname = log_directory / datetime.now().strftime('A2S-%Y.%m.%d-%H.%M.%S.log')
    logging.basicConfig(format='[%(asctime)s][%(levelname)s] %(message)s', datefmt='%m/%d %H:%M:%S', filename=logname, filemode='w+', level=logging.INFO)
    logging.info('Launching bot...')

    # Run the bot
    with open("token.txt", "r") as f:
        token = f.read().strip()

    bot.run(token, log_handler=None)
