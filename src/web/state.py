import threading
import time


class SharedState:
    """
    Singleton class to share state between the frame-processing worker
    and the web server.
    """
    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(SharedState, cls).__new__(cls)
                    cls._instance._init_state()
        return cls._instance

    def _init_state(self):
        self.result_lock = threading.Lock()
        self.detections = None
        self.announcement = None
        self.pipeline = None
        self.config = None
        self.system_stats = {
            "start_time": 0,
            "last_frame_ts": None,
            "reachable": None,
        }

    def reset(self):
        """Forget everything (used by tests)."""
        with self.result_lock:
            self._init_state()

    def set_pipeline(self, pipeline):
        self.pipeline = pipeline

    def set_config(self, config):
        self.config = config

    def publish(self, result, reachable=None):
        """Store the newest frame result for the rendering side."""
        with self.result_lock:
            self.detections = result.detections
            if result.announcement is not None:
                self.announcement = result.announcement
            self.system_stats["last_frame_ts"] = time.time()
            if reachable is not None:
                self.system_stats["reachable"] = reachable

    def clear_results(self):
        with self.result_lock:
            self.detections = None
            self.announcement = None

    def get_results(self):
        """Return (detections, announcement) as one consistent pair."""
        with self.result_lock:
            return self.detections, self.announcement

    def update_system_stats(self, stats):
        self.system_stats.update(stats)

    def get_system_stats_copy(self):
        return dict(self.system_stats)


# Global instance
state = SharedState()
