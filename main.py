"""
DailyRoll — Entry Point.

Single entry point: `python main.py` starts the LINE webhook server.
"""

import logging

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

from src.bot.webhook import main

if __name__ == "__main__":
    main()
