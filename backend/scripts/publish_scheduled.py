"""
Publish every scheduled content item whose time has come.

Usage:
    python backend/scripts/publish_scheduled.py
    python backend/scripts/publish_scheduled.py --now 2026-03-01T09:00:00Z
"""

import argparse
import asyncio
import json
from datetime import datetime

from quill.core.clock import to_naive_utc
from quill.core.config import get_settings
from quill.core.correlation import bind_ids, clear_ids, new_correlation_id
from quill.core.logging import setup_logging
from quill.services.scheduled_publish_service import scheduled_publish_service


async def run(now: datetime | None = None) -> dict:
    bind_ids(request_id="", correlation_id=new_correlation_id("cli"))
    try:
        result = await scheduled_publish_service.run(now=to_naive_utc(now) if now else None)
    finally:
        clear_ids()
    return result.to_dict()


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--now", type=datetime.fromisoformat, default=None, help="override the current time (ISO 8601)")
    args = parser.parse_args()
    setup_logging(debug=get_settings().app_debug)
    print(json.dumps(asyncio.run(run(args.now)), ensure_ascii=False))


if __name__ == "__main__":
    main()
