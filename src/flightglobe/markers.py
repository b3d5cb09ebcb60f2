"""Named markers on the globe surface, with add-or-move-by-name semantics."""

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, replace
from typing import Literal

from flightglobe.models import Marker

logger = logging.getLogger(__name__)

SUN_MARKER = "sun_marker"
ORIGIN_MARKER = "origin_marker"
DESTINATION_MARKER = "destination_marker"
AIRPLANE_MARKER = "airplane_marker"


@dataclass(frozen=True)
class MarkerEvent:
    """Emitted to the scene collaborator whenever a marker node must change."""

    kind: Literal["added", "moved", "removed"]
    marker: Marker


MarkerListener = Callable[[MarkerEvent], None]


class MarkerRegistry:
    """At most one live marker per name.

    Holds positions and styles only; render objects belong to whoever
    subscribes to the events.
    """

    def __init__(self) -> None:
        self._markers: dict[str, Marker] = {}
        self._listeners: list[MarkerListener] = []

    def subscribe(self, listener: MarkerListener) -> Callable[[], None]:
        """Register a listener. Returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def upsert(self, marker: Marker) -> Marker:
        """Insert a marker, or move the live marker with the same name.

        A move updates latitude, longitude and altitude in place; the live
        marker keeps its style.
        """
        existing = self._markers.get(marker.name)
        if existing is None:
            self._markers[marker.name] = marker
            logger.debug("Marker added: %s", marker.name)
            self._emit(MarkerEvent("added", marker))
            return marker

        moved = replace(
            existing,
            latitude=marker.latitude,
            longitude=marker.longitude,
            altitude=marker.altitude,
        )
        self._markers[marker.name] = moved
        logger.debug("Updating position of marker: %s", marker.name)
        self._emit(MarkerEvent("moved", moved))
        return moved

    def remove_by_name(self, name: str) -> None:
        marker = self._markers.pop(name, None)
        if marker is not None:
            logger.debug("Marker removed: %s", name)
            self._emit(MarkerEvent("removed", marker))

    def get(self, name: str) -> Marker | None:
        return self._markers.get(name)

    def markers(self) -> tuple[Marker, ...]:
        return tuple(self._markers.values())

    def __contains__(self, name: object) -> bool:
        return name in self._markers

    def __len__(self) -> int:
        return len(self._markers)

    def __iter__(self) -> Iterator[Marker]:
        return iter(self.markers())

    def _emit(self, event: MarkerEvent) -> None:
        for listener in list(self._listeners):
            listener(event)
