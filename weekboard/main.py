import argparse
import logging
import sys
from weekboard.core.app import WeekboardApp, LOG_FORMAT


def setup_basic_logging():
    """Setup basic stdout logging before config is loaded"""
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(handler)
        root_logger.setLevel(logging.DEBUG)
        logging.debug("Basic logging initialized")


def main(argv=None):
    setup_basic_logging()

    parser = argparse.ArgumentParser(description='Weekboard: week calendar with holiday toggles')
    parser.add_argument('--config', default="config.yaml",
                        help='Path to config file (created with defaults if missing)')
    args = parser.parse_args(argv)

    app = WeekboardApp(config_path=args.config)
    app.run()


if __name__ == "__main__":
    main()
