"""Application entry point for the Ellcworth shipments backend."""

from ellcworth.app import App
from ellcworth.config import Config
from ellcworth.logging import setup_logging
from ellcworth.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    run_server(App(config), config)


if __name__ == "__main__":
    main()
