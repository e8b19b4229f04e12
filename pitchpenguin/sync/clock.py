import math
import time


def now_ms() -> int:
    return int(time.time() * 1000)


def seconds_left(expires_at: float | None, now: float, clock_offset: int = 0) -> int | None:
    """
    Whole seconds until a server-absolute expiry, rounded up and never
    negative. All values are epoch milliseconds.
    """
    if expires_at is None:
        return None
    return max(0, math.ceil((expires_at - (now + clock_offset)) / 1000))


class ClockOffset:
    """
    Difference between the server clock and ours (serverNow - localNow).
    Only a fresh serverNow moves it; otherwise the last value stays.
    """

    def __init__(self):
        self.value = 0

    def update(self, server_now: int | None, local_now: int) -> int:
        if server_now is not None:
            self.value = int(server_now - local_now)
        return self.value

    def server_time(self, local_now: int) -> int:
        return local_now + self.value
