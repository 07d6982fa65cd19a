from typing import Any, Dict, Optional
from datetime import datetime
from zoneinfo import ZoneInfo

from parley.domain.tool.capability import Capability

TIME_FORMAT = "%m/%d/%Y, %I:%M:%S %p"


def current_time(_orchestrator: Any, args: Dict[str, Any]) -> str:
    """Current time in the requested IANA zone, or the system zone"""

    zone_name = (args or {}).get("timeZone")
    if zone_name:
        now = datetime.now(ZoneInfo(zone_name))
    else:
        now = datetime.now().astimezone()
    return now.strftime(TIME_FORMAT)


def time_capability(description: Optional[str] = None) -> Capability:
    return Capability(
        name="get_time",
        description=description or "Get the current time from the system",
        parameters={
            "timeZone": (
                "Optional - Time zone to get the time from, if not provided, "
                "the time zone of the system will be used"
            ),
        },
        invoke=current_time,
    )
