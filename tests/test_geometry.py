import pytest

import salon_report_engine as sre
import salon_report_engine.geometry


Transform2D = sre.geometry.Transform2D


#============================================
def test_clamp_bounds() -> None:
	assert sre.geometry.clamp(7.0, 0.5, 5.0) == 5.0
	assert sre.geometry.clamp(0.1, 0.5, 5.0) == 0.5
	assert sre.geometry.clamp(2.0, 0.5, 5.0) == 2.0
	assert sre.geometry.clamp_scale(100.0) == 5.0
	with pytest.raises(ValueError):
		sre.geometry.clamp(1.0, 2.0, 1.0)


#============================================
def test_css_transform_string() -> None:
	transform = Transform2D(scale=1.5, translate_x=12.0, translate_y=-4.25)
	assert transform.to_css() == "translate(12px, -4.25px) scale(1.5)"
	assert sre.geometry.IDENTITY.to_css() == "translate(0px, 0px) scale(1)"


#============================================
def test_screen_image_round_trip() -> None:
	"""
	Conversions about the element center invert each other.
	"""
	transform = Transform2D(scale=2.5, translate_x=40.0, translate_y=-15.0)
	origin = (200.0, 150.0)
	for point in [(0.0, 0.0), (200.0, 150.0), (399.0, 10.0)]:
		screen = sre.geometry.image_to_screen(transform, point, origin)
		back = sre.geometry.screen_to_image(transform, screen, origin)
		assert back[0] == pytest.approx(point[0])
		assert back[1] == pytest.approx(point[1])


#============================================
def test_center_stays_fixed_without_translation() -> None:
	transform = Transform2D(scale=3.0)
	origin = (50.0, 50.0)
	assert sre.geometry.image_to_screen(transform, origin, origin) == origin
