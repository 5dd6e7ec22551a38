"""
Generation counter used to drop results of superseded async work.
"""


class GenerationCounter:
    """
    Monotonic token source.

    Work captures a token when it starts; invalidate() bumps the
    generation so any token taken earlier stops being current.
    """

    def __init__(self):
        self._generation = 0

    @property
    def current(self) -> int:
        return self._generation

    def begin(self) -> int:
        return self._generation

    def is_current(self, token: int) -> bool:
        return token == self._generation

    def invalidate(self) -> int:
        self._generation += 1
        return self._generation
