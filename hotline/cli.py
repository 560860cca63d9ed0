# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Periodic trigger for crontab: point the forward number at the volunteer on call.

    hotline-refresh                      # resolve now and store
    hotline-refresh --dry-run            # print the resolution only
    hotline-refresh --at 2026-03-20T17:05:00-05:00
"""

import argparse
import json
import sys
from datetime import datetime, timezone

from hotline.core.config import HotlineConfig, settings
from hotline.core.database import make_engine
from hotline.core.logging import get_logger
from hotline.repositories.forward_state_repository import (
    ForwardStateRepository,
    ForwardStoreError,
)
from hotline.repositories.schedule_repository import ScheduleConfigError, load_schedule
from hotline.services.forward_service import ForwardService

logger = get_logger(__name__)


def _parse_instant(value: str) -> datetime:
    instant = datetime.fromisoformat(value)
    if instant.tzinfo is None:
        raise argparse.ArgumentTypeError("--at needs a UTC offset, e.g. 2026-03-20T17:05:00-05:00")
    return instant


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hotline-refresh",
        description="Store the on-call volunteer's number as the hotline forward number.",
    )
    parser.add_argument("--at", type=_parse_instant, default=None,
                        help="evaluate this ISO-8601 instant instead of now")
    parser.add_argument("--dry-run", action="store_true",
                        help="print the resolution without writing it")
    parser.add_argument("--schedule-file", default=settings.SCHEDULE_FILE)
    parser.add_argument("--database-url", default=settings.DATABASE_URL)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    now = args.at or datetime.now(timezone.utc)

    try:
        schedule = load_schedule(args.schedule_file, settings.DEFAULT_TIMEZONE)
    except ScheduleConfigError as exc:
        logger.error("Refresh aborted: %s", exc)
        return 2

    engine = make_engine(args.database_url)
    repo = ForwardStateRepository(engine)
    service = ForwardService(repo, schedule, HotlineConfig.from_settings())
    try:
        if args.dry_run:
            result = service.resolve_scheduled(now)
        else:
            repo.ensure_schema()
            result = service.refresh_from_schedule(now)
    except ForwardStoreError as exc:
        logger.error("Refresh failed: %s", exc)
        return 1
    finally:
        engine.dispose()

    print(json.dumps(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
