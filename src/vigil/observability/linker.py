"""VigilEventLinker: isolated event namespace for vigil lifecycle events.

All vigil subscribers register here. Separate from any other
pyventus usage in the process.
"""

from __future__ import annotations

from pyventus.events import EventLinker


class VigilEventLinker(EventLinker):
    """Isolated event namespace for vigil observability."""

    pass
