# src/randomspot/geodata/sampler/errors.py

class RegionSamplingError(ValueError):
    """Base class for errors raised while bounding, testing or drawing regions."""


class EmptyGeometry(RegionSamplingError):
    """The region has no coordinates to bound."""


class UnsupportedGeometry(RegionSamplingError):
    """The geometry kind is neither Polygon nor MultiPolygon."""


class NoSelectableRegion(RegionSamplingError):
    """Weighted selection got no region with positive weight."""


class SamplingExhausted(RegionSamplingError, RuntimeError):
    """Rejection sampling hit its attempt ceiling without enough accepted points."""

    def __init__(self, region: str, attempts: int, accepted: int = 0, requested: int = 1):
        self.region = region
        self.attempts = attempts
        self.accepted = accepted
        self.requested = requested
        super().__init__(
            f"Only {accepted} of {requested} requested points accepted inside "
            f"'{region}' after {attempts} attempts."
        )


class RegionNotFound(KeyError):
    """No region carries the requested name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(name)

    def __str__(self):
        return f"Region '{self.name}' not found in boundary data."
