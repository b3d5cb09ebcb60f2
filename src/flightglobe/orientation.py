"""Orientation engine — user gestures, seasonal tilt and alignment composed into one transform."""

import math
from collections.abc import Callable
from datetime import date, datetime, timezone

import numpy as np

from flightglobe import geo
from flightglobe.models import AlignmentMode, CameraPlacement, OrientationState

# The amount to rotate the globe on one edge-to-edge swipe (in degrees)
DRAG_WIDTH_DEGREES = 180.0
LANDSCAPE_FOV_REDUCTION = 20.0

USER_TILT_AND_ROTATION_NODE = "user_tilt_and_rotation"
SEASONAL_TILT_NODE = "seasonal_tilt"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def compute_seasonal_tilt(when: date) -> float:
    """Seasonal axial tilt in radians for `when`. See geo.compute_seasonal_tilt."""
    return geo.compute_seasonal_tilt(when)


class OrientationEngine:
    """Owns the globe's rotational state and composes it into transforms.

    Every operation is a synchronous state transition with no locking; callers
    delivering input from several threads must serialize the calls themselves.

    Scene layout the transforms describe::

        root
         └─ user_tilt_and_rotation   compose_transform()
             ├─ seasonal_tilt        seasonal_transform()
             │   └─ globe (markers)
             └─ sun

    Args:
        alignment: Which axis stays visually fixed.
        fov: Initial field of view in degrees (clamped).
        clock: Zero-argument callable returning the current datetime. Seasonal
            tilt is recomputed from it on every composition.
    """

    def __init__(
        self,
        alignment: AlignmentMode = AlignmentMode.POLES,
        fov: float = geo.DEFAULT_FOV,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.state = OrientationState(fov=geo.clamp_fov(fov), alignment=alignment)
        self._clock = clock or _utc_now
        self._last_pan_loc: tuple[float, float] | None = None
        self._fov_before_zoom: float | None = None
        self.camera = CameraPlacement(
            position=(0.0, 0.0, geo.GLOBE_RADIUS + geo.CAMERA_ALTITUDE)
        )

    @property
    def zoom(self) -> float:
        return self.state.fov

    @zoom.setter
    def zoom(self, fov: float) -> None:
        self.set_zoom(fov)

    @property
    def alignment(self) -> AlignmentMode:
        return self.state.alignment

    @alignment.setter
    def alignment(self, mode: AlignmentMode) -> None:
        self.state.alignment = mode

    def set_zoom(self, fov: float) -> None:
        """Set the field of view directly (non-gesture input). Clamped to [4°, 60°]."""
        self.state.fov = geo.clamp_fov(fov)

    def reset_fov(self, is_portrait: bool) -> None:
        """Restore the default zoom after a device orientation change."""
        if is_portrait:
            self.state.fov = geo.DEFAULT_FOV
        else:
            self.state.fov = geo.DEFAULT_FOV - LANDSCAPE_FOV_REDUCTION

    def apply_pan(self, dx: float, dy: float) -> None:
        """Rotate/tilt by a pan expressed as a fraction of the viewport size.

        As the user zooms in (smaller fov) the same finger travel produces a
        finer rotation.

        Args:
            dx: Horizontal pan distance / viewport width. Rotates about the axis.
            dy: Vertical pan distance / viewport height. Tilts the axis itself.
        """
        if dx == 0.0 and dy == 0.0:
            return
        fov_proportion = (self.state.fov - geo.MIN_FOV) / (geo.MAX_FOV - geo.MIN_FOV)
        drag_radians = fov_proportion * math.radians(DRAG_WIDTH_DEGREES)
        self.state.user_rotation -= dx * drag_radians
        self.state.user_tilt -= dy * drag_radians

    def begin_pan(self, x: float, y: float) -> None:
        self._last_pan_loc = (x, y)

    def pan_to(self, x: float, y: float, width: float, height: float) -> None:
        """Continue a pan started with begin_pan, from viewport pixel coordinates."""
        if self._last_pan_loc is None:
            return
        last_x, last_y = self._last_pan_loc
        self.apply_pan((last_x - x) / width, (last_y - y) / height)
        self._last_pan_loc = (x, y)

    def end_pan(self) -> None:
        self._last_pan_loc = None

    def apply_pinch(self, scale: float, is_gesture_start: bool) -> None:
        """Zoom by a pinch scale factor relative to the fov at gesture start."""
        if is_gesture_start:
            self._fov_before_zoom = self.state.fov
            return
        if self._fov_before_zoom is None:
            return
        if scale <= 0:
            # A collapsed pinch is as far out as the zoom goes.
            self.state.fov = geo.clamp_fov(math.inf)
            return
        self.state.fov = geo.clamp_fov(self._fov_before_zoom / scale)

    def focus_on_lat_lon(self, lat: float, lon: float) -> CameraPlacement:
        """Jump so (lat, lon) faces the camera, and place the camera above it.

        The camera sits outward along the target's surface normal at a fixed
        altitude and always looks at the globe centre. No interpolation.
        """
        self.state.user_tilt = math.radians(lat)
        self.state.user_rotation = -math.radians(lon)

        normal = geo.transform_point(
            self.globe_transform(), geo.lat_lon_to_position(lat, lon)
        )
        distance = geo.GLOBE_RADIUS + geo.CAMERA_ALTITUDE
        self.camera = CameraPlacement(
            position=(normal[0] * distance, normal[1] * distance, normal[2] * distance)
        )
        return self.camera

    def seasonal_tilt(self) -> float:
        return compute_seasonal_tilt(self._clock())

    def compose_transform(self) -> np.ndarray:
        """Matrix of the user tilt/rotation node (4x4, column vectors).

        Rotation composition is non-commutative, so the order depends on the
        alignment mode:

        - POLES: user tilt, then user rotation, then seasonal tilt. The
          seasonal factor cancels the child seasonal node, keeping the spin
          axis on the true poles.
        - DAY_NIGHT_TERMINATOR: user tilt, then seasonal tilt, then user
          rotation. The terminator-aligned axis stays fixed.
        """
        seasonal = -self.seasonal_tilt()
        matrix = geo.rotation_x(self.state.user_tilt)
        if self.state.alignment is AlignmentMode.POLES:
            matrix = matrix @ geo.rotation_y(self.state.user_rotation)
            matrix = matrix @ geo.rotation_x(seasonal)
        else:
            matrix = matrix @ geo.rotation_x(seasonal)
            matrix = matrix @ geo.rotation_y(self.state.user_rotation)
        return matrix

    def seasonal_transform(self) -> np.ndarray:
        """Matrix of the seasonal tilt node, the globe's parent."""
        return geo.rotation_x(self.seasonal_tilt())

    def globe_transform(self) -> np.ndarray:
        """Full transform from globe-local coordinates to world coordinates."""
        return self.compose_transform() @ self.seasonal_transform()

    def scene_nodes(self) -> dict[str, np.ndarray]:
        """Local matrices keyed by scene node name, for renderers that build a node tree."""
        return {
            USER_TILT_AND_ROTATION_NODE: self.compose_transform(),
            SEASONAL_TILT_NODE: self.seasonal_transform(),
        }
