import math
from datetime import datetime, timezone

import numpy as np
import pytest

from flightglobe import geo
from flightglobe.models import AlignmentMode
from flightglobe.orientation import OrientationEngine, compute_seasonal_tilt

from conftest import SUMMER_NOON

EQUINOX = datetime(2023, 3, 22, 12, 0, tzinfo=timezone.utc)  # day 81


def make_engine(alignment=AlignmentMode.POLES, when=SUMMER_NOON, fov=40.0):
    return OrientationEngine(alignment=alignment, fov=fov, clock=lambda: when)


@pytest.mark.parametrize("fov", [-500.0, -1.0, 0.0, 3.99, 4.0, 25.0, 60.0, 60.01, 1e6])
def test_set_zoom_keeps_fov_in_range(fov):
    engine = make_engine()
    engine.set_zoom(fov)
    assert geo.MIN_FOV <= engine.zoom <= geo.MAX_FOV


def test_zoom_property_clamps():
    engine = make_engine()
    engine.zoom = 100
    assert engine.zoom == 60.0
    engine.zoom = 12.5
    assert engine.zoom == 12.5


def test_initial_fov_is_clamped():
    assert make_engine(fov=1.0).zoom == geo.MIN_FOV


def test_pan_scales_with_zoom():
    wide = make_engine(fov=60.0)
    wide.apply_pan(0.5, 0.25)
    assert wide.state.user_rotation == pytest.approx(-0.5 * math.pi)
    assert wide.state.user_tilt == pytest.approx(-0.25 * math.pi)

    mid = make_engine(fov=32.0)
    mid.apply_pan(0.5, 0.0)
    assert mid.state.user_rotation == pytest.approx(-0.5 * 0.5 * math.pi)


def test_pan_at_min_fov_does_nothing():
    engine = make_engine(fov=geo.MIN_FOV)
    engine.apply_pan(1.0, 1.0)
    assert engine.state.user_rotation == 0.0
    assert engine.state.user_tilt == 0.0


def test_pan_by_location():
    engine = make_engine(fov=60.0)
    engine.pan_to(10, 10, 100, 100)  # ignored without begin_pan
    assert engine.state.user_rotation == 0.0

    engine.begin_pan(100, 100)
    engine.pan_to(50, 100, 200, 100)
    assert engine.state.user_rotation == pytest.approx(-0.25 * math.pi)
    engine.pan_to(50, 50, 200, 100)
    assert engine.state.user_tilt == pytest.approx(-0.5 * math.pi)


def test_pinch_scales_from_snapshot_and_clamps():
    engine = make_engine(fov=40.0)
    engine.apply_pinch(1.0, is_gesture_start=True)
    engine.apply_pinch(2.0, is_gesture_start=False)
    assert engine.zoom == 20.0
    # Each update is relative to the fov at gesture start, not cumulative.
    engine.apply_pinch(4.0, is_gesture_start=False)
    assert engine.zoom == 10.0
    engine.apply_pinch(100.0, is_gesture_start=False)
    assert engine.zoom == geo.MIN_FOV
    engine.apply_pinch(0.01, is_gesture_start=False)
    assert engine.zoom == geo.MAX_FOV


@pytest.mark.parametrize("scale", [0.0, -1.5])
def test_degenerate_pinch_scale_zooms_fully_out(scale):
    engine = make_engine(fov=10.0)
    engine.apply_pinch(1.0, is_gesture_start=True)
    engine.apply_pinch(scale, is_gesture_start=False)
    assert engine.zoom == geo.MAX_FOV


def test_pinch_update_without_start_is_ignored():
    engine = make_engine(fov=40.0)
    engine.apply_pinch(2.0, is_gesture_start=False)
    assert engine.zoom == 40.0


def test_reset_fov_for_device_orientation():
    engine = make_engine(fov=10.0)
    engine.reset_fov(is_portrait=False)
    assert engine.zoom == 20.0
    engine.reset_fov(is_portrait=True)
    assert engine.zoom == geo.DEFAULT_FOV


def test_alignment_modes_differ_when_tilt_and_rotation_nonzero():
    poles = make_engine(AlignmentMode.POLES)
    terminator = make_engine(AlignmentMode.DAY_NIGHT_TERMINATOR)
    for engine in (poles, terminator):
        engine.state.user_tilt = 0.3
        engine.state.user_rotation = 1.1
    assert poles.seasonal_tilt() != 0
    assert not np.allclose(poles.compose_transform(), terminator.compose_transform())


def test_alignment_modes_agree_without_user_rotation():
    poles = make_engine(AlignmentMode.POLES)
    terminator = make_engine(AlignmentMode.DAY_NIGHT_TERMINATOR)
    for engine in (poles, terminator):
        engine.state.user_tilt = 0.3
    assert np.allclose(poles.compose_transform(), terminator.compose_transform())


def test_compose_transform_order_in_poles_mode():
    engine = make_engine(AlignmentMode.POLES)
    engine.state.user_tilt = 0.2
    engine.state.user_rotation = -0.9
    seasonal = -compute_seasonal_tilt(SUMMER_NOON)
    expected = geo.rotation_x(0.2) @ geo.rotation_y(-0.9) @ geo.rotation_x(seasonal)
    assert np.allclose(engine.compose_transform(), expected)


def test_compose_transform_order_in_terminator_mode():
    engine = make_engine(AlignmentMode.DAY_NIGHT_TERMINATOR)
    engine.state.user_tilt = 0.2
    engine.state.user_rotation = -0.9
    seasonal = -compute_seasonal_tilt(SUMMER_NOON)
    expected = geo.rotation_x(0.2) @ geo.rotation_x(seasonal) @ geo.rotation_y(-0.9)
    assert np.allclose(engine.compose_transform(), expected)


def test_poles_mode_keeps_spin_axis_on_true_poles():
    engine = make_engine(AlignmentMode.POLES)
    engine.state.user_rotation = 0.8
    north = geo.transform_point(engine.globe_transform(), (0.0, 1.0, 0.0))
    assert north == pytest.approx((0.0, 1.0, 0.0), abs=1e-12)


def test_seasonal_tilt_is_recomputed_from_clock():
    now = {"when": SUMMER_NOON}
    engine = OrientationEngine(clock=lambda: now["when"])
    summer = engine.seasonal_transform()
    now["when"] = EQUINOX
    assert not np.allclose(summer, engine.seasonal_transform())
    assert abs(engine.seasonal_tilt()) < math.radians(1.0)


@pytest.mark.parametrize("alignment", list(AlignmentMode))
@pytest.mark.parametrize("lat,lon", [(0.0, 0.0), (40.2, -45.5), (-33.9, 151.2)])
def test_focus_on_lat_lon(alignment, lat, lon):
    engine = make_engine(alignment, when=EQUINOX)
    camera = engine.focus_on_lat_lon(lat, lon)

    assert engine.state.user_tilt == pytest.approx(math.radians(lat))
    assert engine.state.user_rotation == pytest.approx(-math.radians(lon))
    assert camera.look_at == (0.0, 0.0, 0.0)
    assert math.dist(camera.position, (0, 0, 0)) == pytest.approx(
        geo.GLOBE_RADIUS + geo.CAMERA_ALTITUDE
    )
    # The camera sits directly above the target on the transformed globe.
    target = geo.transform_point(
        engine.globe_transform(), geo.lat_lon_to_position(lat, lon)
    )
    distance = geo.GLOBE_RADIUS + geo.CAMERA_ALTITUDE
    assert camera.position == pytest.approx(tuple(c * distance for c in target))


def test_focus_in_poles_mode_faces_default_camera():
    engine = make_engine(AlignmentMode.POLES)
    camera = engine.focus_on_lat_lon(40.2, -45.5)
    assert camera.position == pytest.approx(
        (0.0, 0.0, geo.GLOBE_RADIUS + geo.CAMERA_ALTITUDE), abs=1e-9
    )
    assert engine.camera is camera


def test_scene_nodes_compose_to_globe_transform():
    engine = make_engine(AlignmentMode.DAY_NIGHT_TERMINATOR)
    engine.apply_pan(0.1, -0.2)
    nodes = engine.scene_nodes()
    assert np.allclose(
        nodes["user_tilt_and_rotation"] @ nodes["seasonal_tilt"], engine.globe_transform()
    )
