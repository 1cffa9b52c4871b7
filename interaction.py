import threading

# Delta kinds the accumulator collects between two updates.
ACCUMULATED_FIELDS = ("zoom", "pan_x", "pan_y", "pan_z", "d_theta", "d_phi", "yaw", "pitch")


class InteractionAccumulator:
    """
    Collects the interaction deltas that arrive between two camera updates.

    Input events can fire many times per frame; each call adds to the running
    total for its kind. The zoom anchor is not summed: the most recent zoom
    call wins, on the assumption that the cursor barely moves within a frame.

    The camera drains the accumulator exactly once per update. A lock guards
    the totals so an input thread can keep adding while the render thread
    drains.

    Attributes:
        _deltas (dict): Running total per delta kind.
        _anchor (tuple): Latest zoom anchor (x, y) in NDC, or None.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._deltas = dict.fromkeys(ACCUMULATED_FIELDS, 0.0)
        self._anchor = None

    def add(self, anchor=None, **deltas):
        """
        Add one event's deltas to the running totals.

        Args:
            anchor (tuple, optional): Zoom anchor (x, y) in NDC. Replaces any
                anchor recorded earlier in the frame.
            **deltas: Delta kind -> amount, e.g. `add(pan_x=0.1, pan_y=-0.2)`.

        Raises:
            KeyError: If a kind is not one of ACCUMULATED_FIELDS.
        """
        for name in deltas:
            if name not in self._deltas:
                raise KeyError(f"unknown interaction delta: {name}")
        with self._lock:
            for name, amount in deltas.items():
                self._deltas[name] += amount
            if anchor is not None:
                self._anchor = (float(anchor[0]), float(anchor[1]))

    def pending(self):
        """True if anything was recorded since the last drain."""
        with self._lock:
            return self._anchor is not None or any(self._deltas.values())

    def drain(self):
        """
        Take the accumulated totals and reset them to zero.

        Returns:
            tuple: (deltas, anchor) where `deltas` maps each kind with a
                nonzero total to that total and `anchor` is the latest zoom
                anchor or None.
        """
        with self._lock:
            deltas = {name: amount for name, amount in self._deltas.items() if amount != 0.0}
            anchor = self._anchor
            for name in self._deltas:
                self._deltas[name] = 0.0
            self._anchor = None
        return deltas, anchor
