from fuzzhead.markers import FuzzTarget, fuzzable


class Broken(FuzzTarget)
    @fuzzable
    def add(self, a: int) -> int:
        return a
