from __future__ import annotations

import logging

import discord
from discord.ext import commands

from application.services import (
    ExternalContext,
    GameOperationResult,
    create_game,
    describe_scoreboard,
    describe_turn,
    get_game_status,
    join_game,
    leave_game,
    list_open_games,
    make_decision,
)
from domain.models import PlayerDecision
from domain.repositories import (
    GameRepository,
    IdentityRepository,
    TurnRepository,
    UserRepository,
)


logger = logging.getLogger(__name__)


def _build_external_context(user: discord.abc.User) -> ExternalContext:
    """Create an `ExternalContext` from a Discord user."""

    # Discord has `name` and `display_name`; here we just store the full
    # display name in `first_name` to keep things simple.
    display_name = user.display_name or user.name
    return ExternalContext(
        provider="discord",
        provider_user_id=str(user.id),
        first_name=display_name,
        last_name="",
    )


async def _report(ctx: commands.Context, result: GameOperationResult) -> None:
    if not result.success:
        await ctx.send(result.error_message or "Something went wrong.")
        return

    # Everybody at the table reads the same channel, so each distinct
    # message is posted once.
    seen = set()
    for broadcast in result.broadcasts:
        if broadcast.text in seen:
            continue
        seen.add(broadcast.text)
        await ctx.send(broadcast.text)


def create_discord_bot(
    user_repo: UserRepository,
    identity_repo: IdentityRepository,
    game_repo: GameRepository,
    turn_repo: TurnRepository,
    default_turns_count: int = 3,
) -> commands.Bot:
    """
    Configure and return a Discord bot with behaviour analogous to
    the Telegram interface: open, join and play games, show the score.
    """

    intents = discord.Intents.default()
    intents.message_content = True
    intents.guilds = True
    intents.members = True

    # Disable the default help command so we can provide our own `!help`.
    bot = commands.Bot(command_prefix="!", intents=intents, help_command=None)

    @bot.event
    async def on_ready():
        logger.info("Discord bot logged in as %s (id=%s)", bot.user, bot.user.id)

    @bot.command(name="start")
    async def start_cmd(ctx: commands.Context):
        await ctx.send(
            "Welcome to rock, paper, scissors (Discord)!\n"
            "Use !new to open a game or !games to join one.\n"
            "Type !help to see available commands."
        )

    @bot.command(name="help")
    async def help_cmd(ctx: commands.Context):
        await ctx.send(
            "!new [turns]               - open a new game\n"
            "!games                     - list games waiting for an opponent\n"
            "!join <game id>            - join a game\n"
            "!play <rock|paper|scissors> - make your move\n"
            "!status                    - show the score of your game\n"
            "!leave                     - cancel your current game\n"
        )

    @bot.command(name="new")
    async def new_cmd(ctx: commands.Context, turns_count: int = default_turns_count):
        external_ctx = _build_external_context(ctx.author)
        result = create_game(external_ctx, turns_count, identity_repo, user_repo, game_repo)
        await _report(ctx, result)

    @bot.command(name="games")
    async def games_cmd(ctx: commands.Context):
        games = list_open_games(game_repo)
        if not games:
            await ctx.send("No games are waiting. Use !new to open one.")
            return

        lines = [
            f"{game.id} - {game.players[0].name if game.players else '?'}, "
            f"{game.turns_count} turns"
            for game in games
        ]
        await ctx.send("\n".join(lines))

    @bot.command(name="join")
    async def join_cmd(ctx: commands.Context, game_id: str):
        external_ctx = _build_external_context(ctx.author)
        result = join_game(external_ctx, game_id, identity_repo, user_repo, game_repo)
        await _report(ctx, result)

    @bot.command(name="play")
    async def play_cmd(ctx: commands.Context, choice: str):
        try:
            decision = PlayerDecision.parse(choice)
        except ValueError:
            await ctx.send("Choose rock, paper or scissors.")
            return

        external_ctx = _build_external_context(ctx.author)
        result = make_decision(
            external_ctx, decision, identity_repo, user_repo, game_repo, turn_repo
        )

        # Keep the choice private until the turn is resolved.
        if result.success and result.turn is None:
            try:
                await ctx.message.delete()
            except discord.HTTPException:
                logger.debug("Could not delete decision message %s", ctx.message.id)
            await ctx.send(f"{ctx.author.display_name} has made a move.")
            return

        await _report(ctx, result)

    @bot.command(name="status")
    async def status_cmd(ctx: commands.Context):
        external_ctx = _build_external_context(ctx.author)
        result = get_game_status(external_ctx, identity_repo, game_repo, turn_repo)
        if not result.success:
            await ctx.send(result.error_message)
            return

        sections = [describe_turn(turn) for turn in result.turns]
        sections.append(describe_scoreboard(result.game))
        await ctx.send("\n\n".join(sections))

    @bot.command(name="leave")
    async def leave_cmd(ctx: commands.Context):
        external_ctx = _build_external_context(ctx.author)
        result = leave_game(external_ctx, identity_repo, user_repo, game_repo)
        await _report(ctx, result)

    return bot
