"""
Vector diagram rasterization.
"""

# Standard Library
import concurrent.futures
import io
import typing
import xml.etree.ElementTree as StdElementTree

# PIP3 modules
import cairosvg
import defusedxml
import defusedxml.ElementTree as ElementTree
import PIL.Image

# local repo modules
import salon_report_engine as sre
import salon_report_engine.config


DIAGRAM_PIXEL_SIZE = sre.config.DIAGRAM_PIXEL_SIZE
DIAGRAM_PADDING = sre.config.DIAGRAM_PADDING
DIAGRAM_SCALE = sre.config.DIAGRAM_SCALE

Rasterizer = typing.Callable[[str, tuple[int, int]], PIL.Image.Image]


class DiagramRenderError(Exception):
	"""
	Raised when a diagram cannot be rasterized.
	"""

	def __init__(self, message: str, title: str | None = None) -> None:
		super().__init__(message)
		self.title = title


#============================================
def validate_svg_markup(markup: str) -> StdElementTree.Element:
	"""
	Parse SVG markup with entity expansion and external references disabled.

	Args:
		markup: SVG document text.

	Returns:
		Root element.
	"""
	if not markup or not markup.strip():
		raise DiagramRenderError("empty vector markup")
	try:
		root = ElementTree.fromstring(markup.strip())
	except (StdElementTree.ParseError, defusedxml.DefusedXmlException) as error:
		raise DiagramRenderError(f"invalid vector markup: {error}") from error
	if not root.tag.endswith("svg"):
		raise DiagramRenderError(f"root element is <{root.tag}>, expected <svg>")
	return root


#============================================
def rasterize_svg(
	markup: str,
	target_size: tuple[int, int] = (DIAGRAM_PIXEL_SIZE, DIAGRAM_PIXEL_SIZE),
) -> PIL.Image.Image:
	"""
	Rasterize SVG markup onto a padded white canvas.

	The drawing is fitted inside target_size minus the padding, keeping its
	own aspect ratio, and rendered at DIAGRAM_SCALE for print sharpness.

	Args:
		markup: SVG document text.
		target_size: Box (width, height) in CSS pixels.

	Returns:
		RGB image.
	"""
	validate_svg_markup(markup)
	inner_width = max(1, (target_size[0] - 2 * DIAGRAM_PADDING) * DIAGRAM_SCALE)
	inner_height = max(1, (target_size[1] - 2 * DIAGRAM_PADDING) * DIAGRAM_SCALE)
	try:
		png_bytes = cairosvg.svg2png(
			bytestring=markup.strip().encode("utf-8"),
			output_width=inner_width,
		)
		drawing = PIL.Image.open(io.BytesIO(png_bytes))
		drawing.load()
	except Exception as error:
		raise DiagramRenderError(f"vector renderer failed: {error}") from error

	drawing = drawing.convert("RGBA")
	if drawing.height > inner_height:
		fit = inner_height / drawing.height
		new_size = (max(1, int(round(drawing.width * fit))), inner_height)
		drawing = drawing.resize(new_size, PIL.Image.Resampling.LANCZOS)

	pad = DIAGRAM_PADDING * DIAGRAM_SCALE
	canvas = PIL.Image.new(
		"RGBA",
		(drawing.width + 2 * pad, drawing.height + 2 * pad),
		(255, 255, 255, 255),
	)
	canvas.alpha_composite(drawing, dest=(pad, pad))
	return canvas.convert("RGB")


#============================================
def rasterize_with_timeout(
	rasterizer: Rasterizer,
	markup: str,
	target_size: tuple[int, int],
	timeout: float | None,
	title: str | None = None,
) -> PIL.Image.Image:
	"""
	Run a rasterizer, converting its failures and timeouts to DiagramRenderError.

	Args:
		rasterizer: Callable (markup, target_size) -> image.
		markup: SVG document text.
		target_size: Box size in CSS pixels.
		timeout: Seconds to wait, None waits forever.
		title: Diagram title for error reporting.

	Returns:
		Rasterized image.
	"""
	if timeout is None:
		try:
			return rasterizer(markup, target_size)
		except DiagramRenderError as error:
			error.title = error.title or title
			raise
		except Exception as error:
			raise DiagramRenderError(f"vector renderer failed: {error}", title) from error
	executor = concurrent.futures.ThreadPoolExecutor(max_workers=1)
	future = executor.submit(rasterizer, markup, target_size)
	try:
		return future.result(timeout=timeout)
	except concurrent.futures.TimeoutError as error:
		future.cancel()
		raise DiagramRenderError(f"rasterization exceeded {timeout:.1f}s", title) from error
	except DiagramRenderError as error:
		error.title = error.title or title
		raise
	except Exception as error:
		raise DiagramRenderError(f"vector renderer failed: {error}", title) from error
	finally:
		executor.shutdown(wait=False)
