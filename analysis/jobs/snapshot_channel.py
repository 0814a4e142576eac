#!/usr/bin/env python3
import sys
import json
import logging
import argparse
from datetime import datetime, timezone

# Add project root to path
sys.path.insert(0, ".")

from core.db import get_session_factory
from core.logging import setup_json_logging
from analysis.snapshots import ChannelSnapshotEngine
from collection.clients.youtube import YouTubeClient

logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Capture YouTube channel snapshots and print summaries")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--channel", help="Channel ID to snapshot and summarize")
    group.add_argument("--query", help="Channel name, @handle or URL to resolve first")
    group.add_argument("--refresh-all", action="store_true", help="Re-capture every known channel")
    parser.add_argument("--out-file", help="Output file path (optional)")

    args = parser.parse_args()

    setup_json_logging()
    trace_id = f"snapshot_channel_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}"

    with YouTubeClient() as client:
        engine = ChannelSnapshotEngine(get_session_factory(), client)

        if args.refresh_all:
            captured, failed = engine.refresh_all(trace_id)
            output_data = {"captured": captured, "failed": failed}
        else:
            channel_id = args.channel
            if args.query:
                stats = client.search_channel(args.query)
                if stats is None:
                    logger.warning("No channel matched query", extra={"trace_id": trace_id})
                    sys.exit(1)
                channel_id = stats.channel_id
            else:
                engine.capture_snapshot(channel_id, trace_id)

            summary = engine.summarize(channel_id, trace_id)
            if summary is None:
                logger.warning("Channel could not be resolved", extra={
                    "trace_id": trace_id,
                    "channel_id": channel_id
                })
                sys.exit(1)
            output_data = summary.model_dump(mode="json")

    json_output = json.dumps(output_data, indent=2, ensure_ascii=False)

    if args.out_file:
        with open(args.out_file, 'w', encoding='utf-8') as f:
            f.write(json_output)
        print(f"Results saved to {args.out_file}")
    else:
        print(json_output)


if __name__ == "__main__":
    main()
