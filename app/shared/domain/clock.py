import time
from datetime import datetime, timezone

utc_now = lambda: datetime.now(timezone.utc)  # noqa: E731
utc_now_ms = lambda: int(time.time() * 1000)  # noqa: E731
