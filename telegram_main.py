import logging

from application.services import cancel_waiting_games
from config import load_settings
from infrastructure.db.factory import create_repositories
from interfaces.telegram.handlers import create_telegram_bot


logger = logging.getLogger(__name__)


def main() -> None:
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not settings.telegram_token:
        raise RuntimeError("TELEGRAM_TOKEN environment variable is not set.")

    repos = create_repositories(settings)

    # Games left waiting by a previous run will never find an opponent.
    canceled = cancel_waiting_games(repos.users, repos.games)
    logger.info("Startup sweep canceled %d waiting games", canceled)

    bot = create_telegram_bot(
        settings.telegram_token,
        repos.users,
        repos.identities,
        repos.games,
        repos.turns,
        default_turns_count=settings.default_turns_count,
    )
    logger.info("Telegram bot polling")
    bot.infinity_polling()


if __name__ == "__main__":
    main()
