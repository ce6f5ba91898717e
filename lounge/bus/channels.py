"""Event bus channel constants.

All channel names follow the convention: ch:<domain>:<event_type>
"""


class Channels:
    """Channel name constants for spatial events.

    Colliders and proximity monitors publish on these channels; reactions
    (audio, lighting, video, material changes) subscribe independently.
    """

    # AABBCollider → listeners
    # Payload: {entity, source}
    HIT_START = "ch:collider:hitstart"

    # AABBCollider → listeners
    # Payload: {entity, source}
    HIT_END = "ch:collider:hitend"

    # ProximityMonitor → listeners
    # Payload: {entity, entity_id, distance}
    NEAR = "ch:proximity:near"

    # ProximityMonitor → listeners
    # Payload: {entity, entity_id}
    FAR = "ch:proximity:far"
