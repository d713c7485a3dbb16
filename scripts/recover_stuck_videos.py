"""Run the stuck-video recovery job once from the command line."""

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from chronos.config import configure_logging, settings
from chronos.events import get_event_client
from chronos.recovery.models import RecoveryOptions, RecoveryPolicy
from chronos.recovery.runner import run_recovery
from chronos.videos.storage import StorageError, get_supabase_client


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--dry-run", action="store_true", help="report actions without applying them")
    parser.add_argument("--force", action="store_true", help="bypass the attempt cap and cooldown")
    parser.add_argument(
        "--video-id",
        dest="video_ids",
        action="append",
        default=None,
        help="restrict the run to this video (repeatable)",
    )
    args = parser.parse_args(argv)

    configure_logging(settings.log_level)
    options = RecoveryOptions(force=args.force, dry_run=args.dry_run, video_ids=args.video_ids)

    try:
        with get_event_client() as publisher:
            report = run_recovery(
                get_supabase_client(),
                publisher,
                options,
                RecoveryPolicy.from_settings(settings),
            )
    except StorageError as e:
        print(f"Recovery aborted: {e}", file=sys.stderr)
        return 1

    for r in report.results:
        action = f" [{r.action}]" if r.action else ""
        print(f"  {r.video_id}: {r.status}{action} -- {r.reason}")

    prefix = "DRY RUN: " if args.dry_run else ""
    print(
        f"\n{prefix}{report.total} videos: {report.recovered} recovered, "
        f"{report.failed} failed, {report.skipped} skipped ({report.execution_time_ms} ms)"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
