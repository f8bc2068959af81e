"""
2D transform math for the zoom/pan viewport.
"""

# Standard Library
import dataclasses

# local repo modules
import salon_report_engine as sre
import salon_report_engine.config


VIEWPORT_MIN_SCALE = sre.config.VIEWPORT_MIN_SCALE
VIEWPORT_MAX_SCALE = sre.config.VIEWPORT_MAX_SCALE


@dataclasses.dataclass(frozen=True)
class Transform2D:
	scale: float = 1.0
	translate_x: float = 0.0
	translate_y: float = 0.0

	def with_scale(self, scale: float) -> "Transform2D":
		return dataclasses.replace(self, scale=scale)

	def with_translation(self, translate_x: float, translate_y: float) -> "Transform2D":
		return dataclasses.replace(self, translate_x=translate_x, translate_y=translate_y)

	def to_css(self) -> str:
		"""
		Format as a CSS transform value, applied about the element center.

		Returns:
			CSS transform string.
		"""
		return "translate({}px, {}px) scale({})".format(
			_format_number(self.translate_x),
			_format_number(self.translate_y),
			_format_number(self.scale),
		)


IDENTITY = Transform2D(scale=1.0, translate_x=0.0, translate_y=0.0)


#============================================
def _format_number(value: float) -> str:
	text = f"{value:.4f}".rstrip("0").rstrip(".")
	if text in ("", "-0"):
		return "0"
	return text


#============================================
def clamp(value: float, lower: float, upper: float) -> float:
	"""
	Clamp a value into a closed range.

	Args:
		value: Input value.
		lower: Lower bound.
		upper: Upper bound.

	Returns:
		Clamped value.
	"""
	if lower > upper:
		raise ValueError(f"lower bound {lower} exceeds upper bound {upper}")
	return max(lower, min(upper, value))


#============================================
def clamp_scale(
	scale: float,
	min_scale: float = VIEWPORT_MIN_SCALE,
	max_scale: float = VIEWPORT_MAX_SCALE,
) -> float:
	"""
	Clamp a zoom scale to the viewport limits.
	"""
	return clamp(scale, min_scale, max_scale)


#============================================
def image_to_screen(
	transform: Transform2D,
	point: tuple[float, float],
	origin: tuple[float, float],
) -> tuple[float, float]:
	"""
	Map an untransformed element point to its on-screen position.

	Scaling happens about the origin (the element center), followed by
	the translation, matching translate(...) scale(...) with a centered
	transform origin.

	Args:
		transform: Viewport transform.
		point: Point in element coordinates.
		origin: Transform origin in element coordinates.

	Returns:
		Screen point.
	"""
	x = origin[0] + (point[0] - origin[0]) * transform.scale + transform.translate_x
	y = origin[1] + (point[1] - origin[1]) * transform.scale + transform.translate_y
	return (x, y)


#============================================
def screen_to_image(
	transform: Transform2D,
	point: tuple[float, float],
	origin: tuple[float, float],
) -> tuple[float, float]:
	"""
	Inverse of image_to_screen.

	Args:
		transform: Viewport transform.
		point: Screen point.
		origin: Transform origin in element coordinates.

	Returns:
		Point in element coordinates.
	"""
	if transform.scale == 0:
		raise ValueError("transform scale must be non-zero")
	x = origin[0] + (point[0] - transform.translate_x - origin[0]) / transform.scale
	y = origin[1] + (point[1] - transform.translate_y - origin[1]) / transform.scale
	return (x, y)
