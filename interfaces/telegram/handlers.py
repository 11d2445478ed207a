from __future__ import annotations

import logging
import threading
from typing import Iterable, Optional

import telebot
from telebot.types import InlineKeyboardButton, InlineKeyboardMarkup

from application.services import (
    BroadcastMessage,
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
from domain.game import GameEntity
from domain.models import GameStatus, PlayerDecision
from domain.repositories import (
    GameRepository,
    IdentityRepository,
    TurnRepository,
    UserRepository,
)
from interfaces.telegram.callback_data import (
    encode_decision,
    encode_join_choice,
    parse_decision,
    parse_join_choice,
)


logger = logging.getLogger(__name__)

PROVIDER = "telegram"


def _build_external_context(from_user) -> ExternalContext:
    """Extract a channel-agnostic context object from a Telegram user."""

    return ExternalContext(
        provider=PROVIDER,
        provider_user_id=str(from_user.id),
        first_name=from_user.first_name or "",
        last_name=from_user.last_name or "",
    )


def _decision_markup(game_id: str) -> InlineKeyboardMarkup:
    markup = InlineKeyboardMarkup(row_width=3)
    markup.add(
        *[
            InlineKeyboardButton(
                decision.value.capitalize(),
                callback_data=encode_decision(game_id, decision),
            )
            for decision in PlayerDecision
        ]
    )
    return markup


def _starts_new_turn(game: Optional[GameEntity]) -> bool:
    """True when the game is waiting for the first decision of a turn."""

    return (
        game is not None
        and game.status is GameStatus.PLAYING
        and not game.is_finished()
        and all(p.decision is None for p in game.players)
    )


def create_telegram_bot(
    bot_token: str,
    user_repo: UserRepository,
    identity_repo: IdentityRepository,
    game_repo: GameRepository,
    turn_repo: TurnRepository,
    default_turns_count: int = 3,
) -> telebot.TeleBot:
    """
    Configure and return a TeleBot instance wired to the application layer.

    This module contains only Telegram-specific concerns: parsing Telegram
    messages/callbacks and mapping them to/from application services.
    """

    bot = telebot.TeleBot(bot_token)

    # TeleBot runs handlers on a worker pool; games must only be changed by
    # one handler at a time.
    game_lock = threading.Lock()

    def send_broadcasts(
        broadcasts: Iterable[BroadcastMessage],
        markup: Optional[InlineKeyboardMarkup] = None,
    ) -> None:
        for broadcast in broadcasts:
            for chat_id in identity_repo.get_external_ids_for_user(
                PROVIDER, broadcast.user_id
            ):
                bot.send_message(chat_id, broadcast.text, reply_markup=markup)

    def report(chat_id, result: GameOperationResult) -> None:
        if not result.success:
            bot.send_message(chat_id, result.error_message or "Something went wrong.")
            return

        markup = None
        if _starts_new_turn(result.game):
            markup = _decision_markup(result.game.id)
        send_broadcasts(result.broadcasts, markup)

    @bot.message_handler(commands=["start", "hello"])
    def handle_start(message):
        bot.send_message(
            message.chat.id,
            "Welcome to rock, paper, scissors!\n"
            "Use /new to open a game or /games to join one.\n"
            "Type /help to see available commands.",
        )

    @bot.message_handler(commands=["help"])
    def handle_help(message):
        bot.send_message(
            message.chat.id,
            "/new [turns]           - open a new game\n"
            "/games                 - list games waiting for an opponent\n"
            "/join <game id>        - join a game\n"
            "/rock /paper /scissors - make your move\n"
            "/status                - show the score of your game\n"
            "/leave                 - cancel your current game\n",
        )

    @bot.message_handler(commands=["new"])
    def handle_new(message):
        parts = message.text.split()
        turns_count = default_turns_count
        if len(parts) > 1:
            try:
                turns_count = int(parts[1])
            except ValueError:
                bot.send_message(message.chat.id, "Number of turns must be a number.")
                return

        external_ctx = _build_external_context(message.from_user)
        with game_lock:
            result = create_game(
                external_ctx, turns_count, identity_repo, user_repo, game_repo
            )
        report(message.chat.id, result)

    @bot.message_handler(commands=["games"])
    def handle_games(message):
        games = list_open_games(game_repo)
        if not games:
            bot.send_message(message.chat.id, "No games are waiting. Use /new to open one.")
            return

        markup = InlineKeyboardMarkup(row_width=1)
        for game in games:
            host = game.players[0].name if game.players else "?"
            markup.add(
                InlineKeyboardButton(
                    f"{host}, {game.turns_count} turns",
                    callback_data=encode_join_choice(game.id),
                )
            )
        bot.send_message(message.chat.id, "Choose a game to join", reply_markup=markup)

    @bot.message_handler(commands=["join"])
    def handle_join(message):
        parts = message.text.split()
        if len(parts) < 2:
            bot.send_message(message.chat.id, "Please enter a game id.")
            return

        external_ctx = _build_external_context(message.from_user)
        with game_lock:
            result = join_game(
                external_ctx, parts[1], identity_repo, user_repo, game_repo
            )
        report(message.chat.id, result)

    @bot.message_handler(commands=[d.value for d in PlayerDecision])
    def handle_decision(message):
        decision = PlayerDecision.parse(message.text.split()[0].split("@")[0])

        external_ctx = _build_external_context(message.from_user)
        with game_lock:
            result = make_decision(
                external_ctx, decision, identity_repo, user_repo, game_repo, turn_repo
            )
        report(message.chat.id, result)

    @bot.message_handler(commands=["status"])
    def handle_status(message):
        external_ctx = _build_external_context(message.from_user)
        result = get_game_status(external_ctx, identity_repo, game_repo, turn_repo)
        if not result.success:
            bot.send_message(message.chat.id, result.error_message)
            return

        sections = [describe_turn(turn) for turn in result.turns]
        sections.append(describe_scoreboard(result.game))
        bot.send_message(message.chat.id, "\n\n".join(sections))

    @bot.message_handler(commands=["leave"])
    def handle_leave(message):
        external_ctx = _build_external_context(message.from_user)
        with game_lock:
            result = leave_game(external_ctx, identity_repo, user_repo, game_repo)
        report(message.chat.id, result)

    @bot.callback_query_handler(func=lambda call: call.data.startswith("join:"))
    def handle_join_choice(call):
        try:
            game_id = parse_join_choice(call.data)
        except ValueError:
            bot.answer_callback_query(call.id, "Invalid selection.")
            return

        external_ctx = _build_external_context(call.from_user)
        with game_lock:
            result = join_game(external_ctx, game_id, identity_repo, user_repo, game_repo)

        bot.answer_callback_query(call.id)
        report(call.message.chat.id, result)
        if result.success:
            bot.delete_message(call.message.chat.id, call.message.id)

    @bot.callback_query_handler(func=lambda call: call.data.startswith("decide:"))
    def handle_decision_choice(call):
        try:
            game_id, decision = parse_decision(call.data)
        except ValueError:
            bot.answer_callback_query(call.id, "Invalid decision.")
            return

        external_ctx = _build_external_context(call.from_user)
        with game_lock:
            result = make_decision(
                external_ctx,
                decision,
                identity_repo,
                user_repo,
                game_repo,
                turn_repo,
                game_id=game_id,
            )

        bot.answer_callback_query(call.id, result.error_message or decision.value)
        if result.success:
            report(call.message.chat.id, result)
        else:
            logger.debug("Decision callback rejected: %s", result.error_message)

    return bot
