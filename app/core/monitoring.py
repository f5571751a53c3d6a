import threading
import logging
from typing import Dict, Any, Optional
from datetime import datetime

logger = logging.getLogger("monitoring")

class StoreMonitoring:
    """Process-local request and checkout metrics"""

    def __init__(self):
        self._lock = threading.Lock()
        self.reset()

    def reset(self):
        with self._lock:
            self.metrics = {
                "requests_total": 0,
                "requests_successful": 0,
                "requests_failed": 0,
                "average_response_time": 0,
                "orders_placed": 0,
                "checkouts_rejected": 0,
                "stock_conflicts": 0,
                "last_error": None
            }

    def record_request(self, success: bool, response_time_ms: float):
        """Record API request metrics"""
        with self._lock:
            self.metrics["requests_total"] += 1

            if success:
                self.metrics["requests_successful"] += 1
            else:
                self.metrics["requests_failed"] += 1

            # Update average response time
            current_avg = self.metrics["average_response_time"]
            total_requests = self.metrics["requests_total"]
            self.metrics["average_response_time"] = (
                (current_avg * (total_requests - 1) + response_time_ms) / total_requests
            )

    def record_order(self, order_id: int, user_id: int):
        with self._lock:
            self.metrics["orders_placed"] += 1
        logger.info(f"Order {order_id} placed by user {user_id}")

    def record_checkout_rejected(self, reason: str, user_id: int, stock_conflict: bool = False):
        with self._lock:
            self.metrics["checkouts_rejected"] += 1
            if stock_conflict:
                self.metrics["stock_conflicts"] += 1
        logger.warning(f"Checkout rejected for user {user_id}: {reason}")

    def record_error(self, error: str, user_id: Optional[int] = None):
        """Record system error"""
        with self._lock:
            self.metrics["last_error"] = {
                "error": error,
                "user_id": user_id,
                "timestamp": datetime.now().isoformat()
            }
        logger.error(f"System error: {error} (user: {user_id})")

    def get_health_status(self) -> Dict[str, Any]:
        """Get current system health"""
        with self._lock:
            metrics = dict(self.metrics)

        total_requests = metrics["requests_total"]

        if total_requests == 0:
            success_rate = 100.0
        else:
            success_rate = (metrics["requests_successful"] / total_requests) * 100

        # Determine health status
        if success_rate >= 99 and metrics["average_response_time"] < 500:
            status = "EXCELLENT"
        elif success_rate >= 95 and metrics["average_response_time"] < 1000:
            status = "GOOD"
        elif success_rate >= 90:
            status = "WARNING"
        else:
            status = "CRITICAL"

        return {
            "status": status,
            "success_rate": round(success_rate, 2),
            "average_response_time_ms": round(metrics["average_response_time"], 2),
            "total_requests": total_requests,
            "orders_placed": metrics["orders_placed"],
            "checkouts_rejected": metrics["checkouts_rejected"],
            "stock_conflicts": metrics["stock_conflicts"],
            "last_error": metrics["last_error"],
            "timestamp": datetime.now().isoformat()
        }

# Global monitoring instance
monitoring = StoreMonitoring()
