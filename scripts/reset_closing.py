"""
Run the closing checklist reset once, outside the API process.

Usage:
    python scripts/reset_closing.py            # logged as a manual reset
    python scripts/reset_closing.py --scheduled
"""
import asyncio
import sys

from chefflow.database import engine
from chefflow.services.closing_reset import TRIGGER_MANUAL, TRIGGER_SCHEDULED, run_closing_reset_once
from chefflow.utils.logger import configure_logging


async def main(trigger: str):
    try:
        result = await run_closing_reset_once(trigger)
    finally:
        await engine.dispose()
    print(
        f"Reset {result['total_items_reset']} closing items "
        f"across {result['total_restaurants']} restaurants"
    )


if __name__ == "__main__":
    configure_logging()
    trigger = TRIGGER_SCHEDULED if "--scheduled" in sys.argv[1:] else TRIGGER_MANUAL
    asyncio.run(main(trigger))
