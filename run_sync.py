"""
Drain the offline mutation queue once by hand (same queue the scheduler uses)

    SYNC_QUEUE_PATH=/var/lib/communityfund/sync_queue.json python run_sync.py
"""
import logging
import sys

from communityfund.application.sync_queue import get_offline_queue

logging.basicConfig(level=logging.INFO)

queue = get_offline_queue()

print(f"Pending items: {queue.pending_count()}")
result = queue.drain()
print(f"Synced: {result.success}, failed: {result.failed}")
for item_id, error in result.failures:
    print(f"  - {item_id}: {error}")

sys.exit(1 if result.failed else 0)
