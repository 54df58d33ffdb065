from datetime import datetime, timezone


class SystemClock:
    """Wall-clock time source. Always returns timezone-aware UTC instants."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


system_clock = SystemClock()


# ---------------------------
# Dependency for FastAPI
# ---------------------------
def get_clock() -> SystemClock:
    return system_clock
