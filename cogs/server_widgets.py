import discord
from discord.ext import commands, tasks

import asyncio
from datetime import datetime
from functools import partial
import logging
import sqlite3

from a2sdecode.info import SourceInfo
from a2sdecode.query import get_managed_query, QueryException
from a2sdecode.reader import DecodeError

from utils import (Config, add_empty_fields, base_embed, parse_address, enum_name, format_duration,
                   SERVER_TYPE_NAMES, ENVIRONMENT_NAMES)
config = Config()


def query_server(address, players=False, rules=False):
    """ Blocking, run it in an executor. Always asks for info first so the
    client knows which game it is talking to. """
    timeout = config.get_float("query_timeout")
    strict = config.get_bool("query_strict_info")
    with get_managed_query(address, timeout=timeout, strict=strict) as query:
        info = query.info()
        player_record = query.players() if players else None
        rules_record = query.rules() if rules else None
    return info, player_record, rules_record


def playercount_color(playercount, max_players):
    if not max_players: return None
    fill = playercount / max_players
    if fill >= 1: color = discord.Color.dark_red()
    elif fill >= 0.8: color = discord.Color.red()
    elif fill >= 0.5: color = discord.Color.orange()
    elif fill >= 0.2: color = discord.Color.gold()
    elif playercount > 0: color = discord.Color.green()
    else: color = None
    return color


def create_server_embed(address, info, timestamp=None):
    color = playercount_color(info.players, info.max_players)
    embed = base_embed(address, title=info.name, description=info.game, color=color)

    players = f"{info.players}/{info.max_players}"
    if getattr(info, "bots", 0):
        players += f" ({info.bots} bots)"
    embed.add_field(name="Players", value=players)
    embed.add_field(name="Map", value=info.map or "-")
    embed.add_field(name="Server type", value=enum_name(info.server_type, SERVER_TYPE_NAMES))
    embed.add_field(name="Environment", value=enum_name(info.environment, ENVIRONMENT_NAMES))
    embed.add_field(name="Password", value="Yes" if info.visibility else "No")
    if hasattr(info, "vac"):
        embed.add_field(name="VAC", value="Secured" if info.vac else "Insecure")

    if isinstance(info, SourceInfo):
        embed.add_field(name="Version", value=info.version or "-")
        if info.the_ship:
            embed.add_field(name="Game mode", value=enum_name(info.the_ship.mode))
        if info.extra_data_fields.keywords:
            embed.add_field(name="Keywords", value=info.extra_data_fields.keywords[:1024], inline=False)

    embed = add_empty_fields(embed)
    timestamp = timestamp or datetime.now()
    embed.set_footer(text="Last updated: " + timestamp.strftime("%H:%M:%S"))
    return embed


def create_offline_embed(address, error, timestamp=None):
    embed = base_embed(address, title="Server offline", description=f"`{error}`", color=discord.Color.dark_grey())
    timestamp = timestamp or datetime.now()
    embed.set_footer(text="Last updated: " + timestamp.strftime("%H:%M:%S"))
    return embed


def create_players_embed(address, record, limit=25):
    players = sorted(record.player_data, key=lambda p: p.score, reverse=True)
    embed = base_embed(address, title=f"Players ({len(players)}/{record.player_count})")
    if not players:
        embed.description = "No players online"
        return embed

    lines = []
    for player in players[:limit]:
        line = f"`{player.score:>4}` {discord.utils.escape_markdown(player.name) or '(connecting)'} - {format_duration(player.duration)}"
        if player.ship_extension:
            line += f" - {player.ship_extension.deaths} deaths, ${player.ship_extension.money}"
        lines.append(line)
    if len(players) > limit:
        lines.append(f"...and {len(players) - limit} more")
    embed.description = "\n".join(lines)
    return embed


def create_rules_embed(address, record, limit=20):
    embed = base_embed(address, title=f"Rules ({record.rule_count})")
    lines = [f"{rule.name} = {rule.value}" for rule in record.rules[:limit]]
    if len(record.rules) > limit:
        lines.append(f"...and {len(record.rules) - limit} more")
    embed.description = "```\n" + ("\n".join(lines) or "No rules") + "\n```"
    if record.remaining:
        embed.set_footer(text=f"Response was cut off after {len(record.rules)} rules")
    return embed


class ServerStatusWidgets(commands.Cog):
    """Server queries and self-updating status widgets"""

    def __init__(self, bot):
        self.db = sqlite3.connect('widgets.db')
        self.cur = self.db.cursor()
        self.cur.execute('CREATE TABLE IF NOT EXISTS widgets(address TEXT, channel_id INT, message_id INT)')
        self.db.commit()
        self.bot = bot
        self.update_widgets.change_interval(seconds=config.get_float("widget_interval"))
        self.update_widgets.start()

    def cog_unload(self):
        self.update_widgets.cancel()
        self.db.close()

    async def run_query(self, address, players=False, rules=False):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(query_server, address, players=players, rules=rules))


    @commands.command(description="Show the status of a server", usage="r!query <host:port>", aliases=["server", "info"])
    async def query(self, ctx, address: parse_address):
        async with ctx.typing():
            info, _, _ = await self.run_query(address)
        await ctx.send(embed=create_server_embed(address, info))

    @commands.command(description="List the players on a server", usage="r!players <host:port>", aliases=["playerlist"])
    async def players(self, ctx, address: parse_address):
        async with ctx.typing():
            _, players, _ = await self.run_query(address, players=True)
        await ctx.send(embed=create_players_embed(address, players))

    @commands.command(description="Show the rules (cvars) of a server", usage="r!rules <host:port>", aliases=["cvars"])
    async def rules(self, ctx, address: parse_address):
        async with ctx.typing():
            _, _, rules = await self.run_query(address, rules=True)
        await ctx.send(embed=create_rules_embed(address, rules))


    @commands.group(invoke_without_command=True, name="widget", description="Create and remove status widgets",
                    usage="r!widget <add|remove|list>", aliases=["status_widget"])
    @commands.guild_only()
    async def widget(self, ctx):
        await ctx.send(
            f"**Available Operations**\n{ctx.prefix}widget add <host:port>\n{ctx.prefix}widget remove <host:port>\n{ctx.prefix}widget list")

    @widget.command(name="add")
    @commands.guild_only()
    @commands.has_permissions(manage_messages=True)
    async def widget_add(self, ctx, address: parse_address):
        info, _, _ = await self.run_query(address)
        message = await ctx.send(embed=create_server_embed(address, info))
        self.cur.execute('INSERT INTO widgets VALUES (?,?,?)', ("%s:%s" % address, ctx.channel.id, message.id))
        self.db.commit()
        logging.info('Added widget for %s:%s in channel %s', *address, ctx.channel.id)

    @widget.command(name="remove", aliases=["delete"])
    @commands.guild_only()
    @commands.has_permissions(manage_messages=True)
    async def widget_remove(self, ctx, address: parse_address):
        self.cur.execute('SELECT message_id FROM widgets WHERE address = ? AND channel_id = ?', ("%s:%s" % address, ctx.channel.id))
        message_ids = [message_id for (message_id,) in self.cur.fetchall()]
        if not message_ids:
            raise commands.BadArgument("No widget for %s:%s in this channel" % address)

        for message_id in message_ids:
            try: await ctx.channel.get_partial_message(message_id).delete()
            except discord.NotFound: pass
        self.cur.execute('DELETE FROM widgets WHERE address = ? AND channel_id = ?', ("%s:%s" % address, ctx.channel.id))
        self.db.commit()
        await ctx.send(f"Removed {len(message_ids)} widget(s) for `%s:%s`" % address)

    @widget.command(name="list")
    @commands.guild_only()
    async def widget_list(self, ctx):
        self.cur.execute('SELECT address, message_id FROM widgets WHERE channel_id = ?', (ctx.channel.id,))
        res = self.cur.fetchall()
        if not res:
            await ctx.send("There are no widgets in this channel")
            return
        await ctx.send("\n".join(f"`{address}` - {ctx.channel.get_partial_message(message_id).jump_url}" for address, message_id in res))


    @tasks.loop(seconds=30.0)
    async def update_widgets(self):
        self.cur.execute('SELECT address, channel_id, message_id FROM widgets')
        res = self.cur.fetchall()
        for address, channel_id, message_id in res:
            channel = self.bot.get_channel(channel_id)
            if channel is None:
                logging.warning('Widget %s: Channel %s is not available', address, channel_id)
                continue

            try:
                info, _, _ = await self.run_query(parse_address(address))
            except (QueryException, DecodeError) as e:
                logging.warning('Widget %s: Query failed: %s', address, e)
                embed = create_offline_embed(address, e)
            else:
                embed = create_server_embed(address, info)

            try:
                await channel.get_partial_message(message_id).edit(embed=embed)
            except discord.NotFound:
                logging.info('Widget %s: Message %s was deleted, forgetting it', address, message_id)
                self.cur.execute('DELETE FROM widgets WHERE message_id = ?', (message_id,))
                self.db.commit()
            except discord.HTTPException as e:
                logging.warning('Widget %s: Failed to edit message %s: %s', address, message_id, e)

    @update_widgets.before_loop
    async def before_update_widgets(self):
        await self.bot.wait_until_ready()



async def setup(bot):
    await bot.add_cog(ServerStatusWidgets(bot))
