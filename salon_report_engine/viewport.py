"""
Zoom and pan state for a displayed image.
"""

# Standard Library
import typing

# local repo modules
import salon_report_engine as sre
import salon_report_engine.config
import salon_report_engine.geometry


Transform2D = sre.geometry.Transform2D
IDENTITY = sre.geometry.IDENTITY

MIN_SCALE = sre.config.VIEWPORT_MIN_SCALE
MAX_SCALE = sre.config.VIEWPORT_MAX_SCALE
ZOOM_SENSITIVITY = sre.config.VIEWPORT_ZOOM_SENSITIVITY
ZOOM_STEP = sre.config.VIEWPORT_ZOOM_STEP

STATE_IDLE = "IDLE"
STATE_PANNING = "PANNING"

TransformListener = typing.Callable[[Transform2D], None]


class ViewportController:
	"""
	Tracks the zoom level and pan offset of one image.

	Two states: IDLE and PANNING. on_pan_start moves IDLE to PANNING when
	the image is zoomed past 1x; on_pan_end and on_pointer_leave move back.
	Wheel and button zooms work in either state and only touch the scale,
	panning only touches the translation. Translation is not bounded; the
	display container clips the image.
	"""

	def __init__(self) -> None:
		self._transform = IDENTITY
		self._state = STATE_IDLE
		self._anchor = (0.0, 0.0)
		self._listeners: list[TransformListener] = []

	@property
	def transform(self) -> Transform2D:
		return self._transform

	@property
	def state(self) -> str:
		return self._state

	@property
	def is_panning(self) -> bool:
		return self._state == STATE_PANNING

	@property
	def cursor(self) -> str:
		if self.is_panning:
			return "grabbing"
		if self._transform.scale > 1.0:
			return "grab"
		return "default"

	#============================================
	def subscribe(self, listener: TransformListener) -> typing.Callable[[], None]:
		"""
		Register a callback fired with the new transform after each change.

		Args:
			listener: Callable taking a Transform2D.

		Returns:
			Callable that removes the listener.
		"""
		self._listeners.append(listener)

		def unsubscribe() -> None:
			if listener in self._listeners:
				self._listeners.remove(listener)

		return unsubscribe

	def _set_transform(self, transform: Transform2D) -> None:
		if transform == self._transform:
			return
		self._transform = transform
		for listener in list(self._listeners):
			listener(transform)

	#============================================
	def on_wheel(self, delta_y: float) -> Transform2D:
		"""
		Zoom from a wheel event. Positive deltas zoom out.

		Args:
			delta_y: Wheel delta.

		Returns:
			Updated transform.
		"""
		scale = sre.geometry.clamp(
			self._transform.scale - delta_y * ZOOM_SENSITIVITY,
			MIN_SCALE,
			MAX_SCALE,
		)
		self._set_transform(self._transform.with_scale(scale))
		return self._transform

	def on_pan_start(self, pointer_x: float, pointer_y: float) -> bool:
		"""
		Begin a drag when the image is zoomed in.

		Returns:
			True if panning started.
		"""
		if self._transform.scale <= 1.0:
			return False
		self._anchor = (
			pointer_x - self._transform.translate_x,
			pointer_y - self._transform.translate_y,
		)
		self._state = STATE_PANNING
		return True

	def on_pan_move(self, pointer_x: float, pointer_y: float) -> Transform2D:
		if not self.is_panning:
			return self._transform
		self._set_transform(
			self._transform.with_translation(
				pointer_x - self._anchor[0],
				pointer_y - self._anchor[1],
			)
		)
		return self._transform

	def on_pan_end(self) -> None:
		self._state = STATE_IDLE

	def on_pointer_leave(self) -> None:
		self.on_pan_end()

	#============================================
	def zoom_by(self, factor: float) -> Transform2D:
		"""
		Multiply the scale by a factor, clamped to the limits.

		Args:
			factor: Multiplicative zoom factor.

		Returns:
			Updated transform.
		"""
		scale = sre.geometry.clamp(self._transform.scale * factor, MIN_SCALE, MAX_SCALE)
		self._set_transform(self._transform.with_scale(scale))
		return self._transform

	def zoom_in(self) -> Transform2D:
		return self.zoom_by(ZOOM_STEP)

	def zoom_out(self) -> Transform2D:
		return self.zoom_by(1.0 / ZOOM_STEP)

	def reset(self) -> Transform2D:
		self._state = STATE_IDLE
		self._anchor = (0.0, 0.0)
		self._set_transform(IDENTITY)
		return self._transform
