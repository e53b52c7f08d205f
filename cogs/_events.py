import discord
from discord.ext import commands
from datetime import datetime
import difflib
import logging

from utils import Config, format_duration
config = Config()

from a2sdecode.query import QueryException
from a2sdecode.reader import DecodeError


def describe_error(error, error_emoji=None):
    """ Turn a command error into the message shown to the user """
    error_emoji = error_emoji or config.get("error_message_emoji")

    if isinstance(error, commands.CommandInvokeError):
        error = error.original

    if isinstance(error, commands.CommandOnCooldown):
        return f"{error_emoji} That command is still on cooldown! Cooldown expires in " + format_duration(error.retry_after) + "."
    elif isinstance(error, commands.NoPrivateMessage):
        return f"{error_emoji} That command can only be used in a server!"
    elif isinstance(error, commands.MissingPermissions):
        return f"{error_emoji} Missing required permissions to use that command!\n`{str(error)}`"
    elif isinstance(error, commands.BotMissingPermissions):
        return f"{error_emoji} I am missing required permissions to use that command!\n`{str(error)}`"
    elif isinstance(error, commands.CheckFailure):
        return f"{error_emoji} Couldn't run that command!\n`{str(error)}`"
    elif isinstance(error, commands.MissingRequiredArgument):
        return f"{error_emoji} Missing required argument(s)!\n`{str(error)}`"
    elif isinstance(error, commands.BadArgument):
        return f"{error_emoji} Invalid argument!\n`{str(error)}`"
    elif isinstance(error, QueryException):
        return f"{error_emoji} Couldn't reach the server!\n`{str(error)}`"
    elif isinstance(error, DecodeError):
        return f"{error_emoji} The server sent a response I couldn't read! ({error.code})\n`{str(error)}`"
    else:
        return f"{error_emoji} Oops, something went wrong!\n`{str(error)}`"


class _events(commands.Cog):
    """A class with most events in it"""

    def __init__(self, bot):
        self.bot = bot


    @commands.Cog.listener()
    async def on_command_error(self, ctx, error):

        if hasattr(ctx.command, 'on_error'):
            return

        if isinstance(error, commands.CommandNotFound):
            used_command = ctx.invoked_with
            all_commands = [command.name for command in self.bot.commands]
            close_matches = difflib.get_close_matches(used_command, all_commands, cutoff=0.3)
            desc = f"{config.get('error_message_emoji')} Unknown command!"
            if close_matches:
                desc += f"\n`Maybe try one of the following: {ctx.clean_prefix}{f', {ctx.clean_prefix}'.join(close_matches)}`"
            await ctx.send(desc)
            return

        await ctx.send(describe_error(error))

        if not isinstance(error, (commands.CommandOnCooldown, commands.UserInputError)):
            location = f"{ctx.guild.name} #{ctx.channel.name}" if ctx.guild else "DM"
            logging.error('Error in %s: %s', location, getattr(error, 'original', error))


    @commands.Cog.listener()
    async def on_ready(self):
        logging.info('Launched %s on %s (ID: %s)', self.bot.user.name, datetime.now(), self.bot.user.id)
        await self.bot.change_presence(activity=discord.Activity(name=f"servers | {config.get('command_prefix')}query", type=discord.ActivityType.watching))



async def setup(bot):
    await bot.add_cog(_events(bot))
