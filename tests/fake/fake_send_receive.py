class FakeReceiveFrame:
    """Hands out the given payloads in order, then None (connection closed)."""

    def __init__(self, frames):
        self._frames = [f.encode() if isinstance(f, str) else f for f in frames]
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if not self._frames:
            return None
        return self._frames.pop(0)


class FakeSendFrame:
    def __init__(self):
        self.sent = []

    async def __call__(self, payload):
        self.sent.append(payload)

    @property
    def texts(self):
        return [p.decode() for p in self.sent]
