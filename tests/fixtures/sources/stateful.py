from fuzzhead.markers import FuzzTarget, fuzzable


class Session(FuzzTarget):
    def __init__(self):
        self.token = None

    @fuzzable
    def init(self) -> None:
        self.token = "ready"

    @fuzzable
    async def use_init(self) -> str:
        if self.token is None:
            raise RuntimeError("init was not called")
        return self.token
