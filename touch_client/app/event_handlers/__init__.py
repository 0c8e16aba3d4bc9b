"""이벤트 핸들러 패키지."""

from .feed_realtime_handler import (
    FeedRealtimeHandler,
    run_feed_realtime,
    should_trigger_refetch,
)

__all__ = ["FeedRealtimeHandler", "run_feed_realtime", "should_trigger_refetch"]
