class SynthChartError(Exception):
    """Base class for errors raised by the chart pipeline."""


class UnknownArchetype(SynthChartError, KeyError):
    def __init__(self, archetype, known=()):
        self.archetype = archetype
        self.known = tuple(known)
        msg = f"Unknown archetype: {archetype!r}"
        if self.known:
            msg += f". Registered: {', '.join(sorted(self.known))}"
        super().__init__(msg)

    def __str__(self):
        # KeyError would otherwise repr() the message
        return self.args[0]


class MalformedCanonicalData(SynthChartError, ValueError):
    def __init__(self, archetype, issue):
        self.archetype = archetype
        self.issue = issue
        super().__init__(f"{archetype}: {issue}")
