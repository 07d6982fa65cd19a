import structlog
import logging
import sys
from typing import Dict, Any, Optional
from datetime import datetime, timezone
import os


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    service_name: str = "parley"
) -> None:
    """Setup structured logging configuration"""

    # Configure Python logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO)
    )

    # Processors for structlog
    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        add_service_context,
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.bind_contextvars(
        service=service_name,
        environment=os.getenv("ENVIRONMENT", "development"),
    )


def add_service_context(logger: logging.Logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add conversation context to all log entries"""

    if "timestamp" not in event_dict:
        event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()

    context = structlog.contextvars.get_contextvars()

    # Orchestrator binds these for the duration of a converse() call
    for key in ("service", "orchestrator", "conversation_id"):
        if key in context and key not in event_dict:
            event_dict[key] = context[key]

    return event_dict


class AgentLogger:
    """Specialized logger for orchestration events"""

    def __init__(self, name: str):
        self.logger = structlog.get_logger(name)

    def log_conversation_event(
        self,
        event_type: str,
        orchestrator: str,
        data: Optional[Dict[str, Any]] = None,
        **kwargs
    ):
        """Log conversation lifecycle events"""

        self.logger.info(
            "conversation_event",
            event_type=event_type,
            orchestrator=orchestrator,
            data=data or {},
            **kwargs
        )

    def log_provider_call(
        self,
        provider: str,
        duration_ms: float,
        choices: int,
        success: bool = True,
        error: Optional[str] = None
    ):
        """Log one provider invocation"""

        log = self.logger.info if success else self.logger.warning
        log(
            "provider_call",
            provider=provider,
            duration_ms=duration_ms,
            choices=choices,
            success=success,
            error=error
        )

    def log_provider_failover(
        self,
        provider: str,
        from_pool: str,
        to_pool: Optional[str],
        remaining_primary: int,
        remaining_secondary: int
    ):
        """Log provider demotion or exclusion"""

        self.logger.warning(
            "provider_failover",
            provider=provider,
            from_pool=from_pool,
            to_pool=to_pool or "excluded",
            remaining_primary=remaining_primary,
            remaining_secondary=remaining_secondary
        )

    def log_tool_execution(
        self,
        tool_name: str,
        tool_call_id: str,
        input_data: Optional[Any] = None,
        duration_ms: Optional[float] = None,
        success: bool = True,
        error: Optional[str] = None
    ):
        """Log tool execution events"""

        self.logger.info(
            "tool_execution",
            tool_name=tool_name,
            tool_call_id=tool_call_id,
            input_data=input_data,
            duration_ms=duration_ms,
            success=success,
            error=error
        )


# Global logger instance
agent_logger = AgentLogger("parley")


class MetricsCollector:
    """Collect and export metrics"""

    def __init__(self):
        self.metrics: Dict[str, Any] = {}

    def record_latency(self, operation: str, duration_ms: float, tags: Optional[Dict[str, str]] = None):
        """Record operation latency"""

        key = f"latency.{operation}"
        if key not in self.metrics:
            self.metrics[key] = {
                "count": 0,
                "sum": 0,
                "min": float('inf'),
                "max": 0
            }

        self.metrics[key]["count"] += 1
        self.metrics[key]["sum"] += duration_ms
        self.metrics[key]["min"] = min(self.metrics[key]["min"], duration_ms)
        self.metrics[key]["max"] = max(self.metrics[key]["max"], duration_ms)

        agent_logger.logger.debug(
            "metric",
            metric_type="latency",
            operation=operation,
            duration_ms=duration_ms,
            tags=tags or {}
        )

    def increment_counter(self, name: str, value: int = 1, tags: Optional[Dict[str, str]] = None):
        """Increment a counter metric"""

        if name not in self.metrics:
            self.metrics[name] = 0
        self.metrics[name] += value

        agent_logger.logger.debug(
            "metric",
            metric_type="counter",
            name=name,
            value=value,
            tags=tags or {}
        )

    def get_metrics_summary(self) -> Dict[str, Any]:
        """Get summary of all metrics"""

        summary = {}
        for key, value in self.metrics.items():
            if isinstance(value, dict) and "count" in value:
                summary[key] = {
                    "count": value["count"],
                    "avg": value["sum"] / value["count"] if value["count"] > 0 else 0,
                    "min": value["min"] if value["min"] != float('inf') else 0,
                    "max": value["max"]
                }
            else:
                summary[key] = value

        return summary

    def reset(self):
        """Drop all recorded metrics"""
        self.metrics.clear()


# Global metrics collector
metrics = MetricsCollector()
