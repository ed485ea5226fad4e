"""
Generation counter for discarding stale async completions
"""


class Generation:
    """Tracks which asynchronous operation is the current one.

    Every operation captures a token with begin(). When it completes it
    applies its effects only if is_current(token) is still true. invalidate()
    is called on teardown so that every pending completion is ignored.
    """

    def __init__(self):
        self._current = 0

    def begin(self) -> int:
        """Start a new operation, superseding any pending one"""
        self._current += 1
        return self._current

    def is_current(self, token: int) -> bool:
        return token == self._current

    def invalidate(self) -> None:
        self._current += 1

    @property
    def value(self) -> int:
        return self._current
