import logging

from application.services import cancel_waiting_games
from config import load_settings
from infrastructure.db.factory import create_repositories
from interfaces.discord.handlers import create_discord_bot


logger = logging.getLogger(__name__)


def main() -> None:
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not settings.discord_token:
        raise RuntimeError("DISCORD_TOKEN environment variable is not set.")

    repos = create_repositories(settings)

    # Games left waiting by a previous run will never find an opponent.
    canceled = cancel_waiting_games(repos.users, repos.games)
    logger.info("Startup sweep canceled %d waiting games", canceled)

    bot = create_discord_bot(
        repos.users,
        repos.identities,
        repos.games,
        repos.turns,
        default_turns_count=settings.default_turns_count,
    )
    bot.run(settings.discord_token, log_handler=None)


if __name__ == "__main__":
    main()
