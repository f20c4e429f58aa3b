from dataclasses import dataclass, field


@dataclass(frozen=True)
class Vehicle:
    """
    A fleet vehicle eligible for tracking.

    Owned by the fleet-management domain; the tracking subsystem only reads it.
    `manifest_id` is the currently open manifest its positions attach to.
    """

    id: int
    patent: str
    provider: str
    user: str
    password: str = field(repr=False)
    manifest_id: int

