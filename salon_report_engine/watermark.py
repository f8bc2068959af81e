"""
Watermark compositing for generated images.
"""

# Standard Library
import base64
import binascii
import dataclasses
import functools
import io

# PIP3 modules
import cairosvg
import PIL.Image

# local repo modules
import salon_report_engine as sre
import salon_report_engine.config


WATERMARK_RELATIVE_WIDTH = sre.config.WATERMARK_RELATIVE_WIDTH
WATERMARK_PADDING_FRACTION = sre.config.WATERMARK_PADDING_FRACTION
WATERMARK_OPACITY = sre.config.WATERMARK_OPACITY
WATERMARK_ANCHOR = sre.config.WATERMARK_ANCHOR
WATERMARK_ANCHORS = sre.config.WATERMARK_ANCHORS
WATERMARK_RASTER_WIDTH = sre.config.WATERMARK_RASTER_WIDTH

LOGO_SVG = (
	'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 100 100">'
	'<defs><filter id="shadow" x="-20%" y="-20%" width="140%" height="140%">'
	'<feGaussianBlur in="SourceAlpha" stdDeviation="2"/>'
	'<feOffset dx="1" dy="1" result="offsetblur"/>'
	'<feFlood flood-color="rgba(0,0,0,0.7)"/>'
	'<feComposite in2="offsetblur" operator="in"/>'
	'<feMerge><feMergeNode/><feMergeNode in="SourceGraphic"/></feMerge>'
	'</filter></defs>'
	'<g transform="scale(0.8) translate(12, 12)" filter="url(#shadow)">'
	'<circle cx="30" cy="30" r="15" stroke="white" stroke-width="10" fill="none"/>'
	'<circle cx="70" cy="30" r="15" stroke="white" stroke-width="10" fill="none"/>'
	'<line x1="42" y1="42" x2="85" y2="85" stroke="white" stroke-width="10" stroke-linecap="round"/>'
	'<line x1="58" y1="42" x2="15" y2="85" stroke="white" stroke-width="10" stroke-linecap="round"/>'
	'</g></svg>'
)

SIXTEEN_BIT_MODES = ("I;16", "I;16L", "I;16B", "I;16N")

FORMAT_MIME_TYPES = {
	"PNG": "image/png",
	"JPEG": "image/jpeg",
	"WEBP": "image/webp",
}


class WatermarkError(Exception):
	"""
	Raised when the source or watermark cannot be decoded or encoded.
	"""


@dataclasses.dataclass(frozen=True)
class WatermarkSpec:
	asset: bytes
	relative_width: float = WATERMARK_RELATIVE_WIDTH
	padding_fraction: float = WATERMARK_PADDING_FRACTION
	opacity: float = WATERMARK_OPACITY
	anchor: str = WATERMARK_ANCHOR

	def __post_init__(self) -> None:
		if not 0.0 < self.relative_width <= 1.0:
			raise ValueError(f"relative_width must be in (0, 1], got {self.relative_width}")
		if not 0.0 <= self.opacity <= 1.0:
			raise ValueError(f"opacity must be in [0, 1], got {self.opacity}")
		if self.padding_fraction < 0.0:
			raise ValueError(f"padding_fraction must be >= 0, got {self.padding_fraction}")
		if self.anchor not in WATERMARK_ANCHORS:
			raise ValueError(f"unknown anchor: {self.anchor}")


#============================================
@functools.lru_cache(maxsize=1)
def default_watermark_spec() -> WatermarkSpec:
	"""
	Process-wide watermark spec built from the built-in logo.
	"""
	return WatermarkSpec(asset=LOGO_SVG.encode("utf-8"))


#============================================
def compute_watermark_box(
	source_size: tuple[int, int],
	watermark_size: tuple[int, int],
	spec: WatermarkSpec,
) -> tuple[float, float, float, float]:
	"""
	Compute where the watermark lands on the source.

	Width is relative_width of the source width, height follows the
	watermark aspect ratio and padding is padding_fraction of the source
	width. A watermark that would be taller than the padded source height
	is shrunk to fit.

	Args:
		source_size: Source (width, height) in pixels.
		watermark_size: Watermark native (width, height) in pixels.
		spec: Watermark spec.

	Returns:
		Box (x, y, width, height).
	"""
	source_width, source_height = source_size
	native_width, native_height = watermark_size
	if native_width <= 0 or native_height <= 0:
		raise WatermarkError(f"watermark has no area: {watermark_size}")

	padding = source_width * spec.padding_fraction
	width = source_width * spec.relative_width
	height = width * (native_height / native_width)
	available_height = max(0.0, source_height - 2.0 * padding)
	if height > available_height:
		fit = available_height / height
		width *= fit
		height = available_height

	if spec.anchor.endswith("right"):
		x = source_width - width - padding
	else:
		x = padding
	if spec.anchor.startswith("bottom"):
		y = source_height - height - padding
	else:
		y = padding
	return (x, y, width, height)


#============================================
def decode_data_uri(value: str) -> bytes:
	"""
	Decode a base64 data URI, or bare base64 text, into bytes.

	Args:
		value: "data:image/png;base64,..." or base64 text.

	Returns:
		Decoded bytes.
	"""
	payload = value.strip()
	if payload.startswith("data:"):
		header, _, payload = payload.partition(",")
		if ";base64" not in header:
			raise WatermarkError("only base64 data URIs are supported")
	try:
		return base64.b64decode(payload, validate=True)
	except (binascii.Error, ValueError) as error:
		raise WatermarkError(f"invalid base64 image payload: {error}") from error


#============================================
def encode_data_uri(data: bytes, image_format: str = "PNG") -> str:
	mime_type = FORMAT_MIME_TYPES.get(image_format.upper(), "application/octet-stream")
	encoded = base64.b64encode(data).decode("ascii")
	return f"data:{mime_type};base64,{encoded}"


#============================================
def _is_svg(data: bytes) -> bool:
	head = data[:512].lstrip().lower()
	return head.startswith(b"<svg") or (head.startswith(b"<?xml") and b"<svg" in data[:2048].lower())


#============================================
def decode_image(data: bytes, role: str) -> PIL.Image.Image:
	"""
	Decode raster bytes with Pillow.

	Args:
		data: Encoded image bytes.
		role: Name used in error messages.

	Returns:
		Loaded PIL image.
	"""
	if not data:
		raise WatermarkError(f"{role} image is empty")
	try:
		image = PIL.Image.open(io.BytesIO(data))
		image.load()
	except (PIL.UnidentifiedImageError, OSError, ValueError) as error:
		raise WatermarkError(f"failed to decode {role} image: {error}") from error
	return image


#============================================
@functools.lru_cache(maxsize=8)
def load_watermark_image(asset: bytes) -> PIL.Image.Image:
	"""
	Decode the watermark asset once; SVG assets are rasterized with alpha.

	The returned image is shared and must not be modified in place.

	Args:
		asset: Encoded raster or SVG bytes.

	Returns:
		RGBA image.
	"""
	if _is_svg(asset):
		try:
			png_bytes = cairosvg.svg2png(bytestring=asset, output_width=WATERMARK_RASTER_WIDTH)
		except Exception as error:
			raise WatermarkError(f"failed to rasterize watermark: {error}") from error
		image = decode_image(png_bytes, "watermark")
	else:
		image = decode_image(asset, "watermark")
	return image.convert("RGBA")


#============================================
def to_eight_bit(image: PIL.Image.Image) -> PIL.Image.Image:
	"""
	Scale 16-bit greyscale samples down to 8-bit.

	Pillow clips "I" samples when converting to RGB, so they are divided
	by 257 first. "I" images are taken to hold 16-bit samples, as 16-bit
	PNG files decode that way. Float images have no fixed range and are
	rejected.

	Args:
		image: Decoded source image.

	Returns:
		Image in an 8-bit mode.
	"""
	if image.mode in SIXTEEN_BIT_MODES:
		image = image.convert("I")
	if image.mode == "I":
		return image.point(lambda value: value * (1.0 / 257.0)).convert("L")
	if image.mode == "F":
		raise WatermarkError("floating point images are not supported")
	return image


#============================================
def composite_watermark(
	source: PIL.Image.Image,
	watermark: PIL.Image.Image,
	spec: WatermarkSpec,
) -> PIL.Image.Image:
	"""
	Blend the watermark onto a copy of the source.

	Only the watermark layer has its alpha scaled by the opacity, so the
	source pixels outside the watermark box are left untouched.

	Args:
		source: Source image.
		watermark: Watermark image.
		spec: Watermark spec.

	Returns:
		New image at the source resolution.
	"""
	x, y, width, height = compute_watermark_box(source.size, watermark.size, spec)
	target_width = max(1, min(source.width, int(round(width))))
	target_height = max(1, min(source.height, int(round(height))))
	dest_x = min(max(0, int(round(x))), source.width - target_width)
	dest_y = min(max(0, int(round(y))), source.height - target_height)

	layer = watermark.convert("RGBA").resize(
		(target_width, target_height),
		PIL.Image.Resampling.LANCZOS,
	)
	alpha = layer.getchannel("A").point(lambda value: int(round(value * spec.opacity)))
	layer.putalpha(alpha)

	keep_alpha = source.mode in ("RGBA", "LA") or "transparency" in source.info
	output = to_eight_bit(source).convert("RGBA")
	output.alpha_composite(layer, dest=(dest_x, dest_y))
	if not keep_alpha:
		output = output.convert("RGB")
	return output


#============================================
def add_watermark(
	source_bytes: bytes,
	spec: WatermarkSpec | None = None,
	image_format: str = "PNG",
) -> bytes:
	"""
	Watermark an encoded image.

	Args:
		source_bytes: Encoded source image.
		spec: Watermark spec, defaults to the built-in logo.
		image_format: Pillow output format name.

	Returns:
		Encoded watermarked image.
	"""
	if spec is None:
		spec = default_watermark_spec()
	source = decode_image(source_bytes, "source")
	watermark = load_watermark_image(spec.asset)
	output = composite_watermark(source, watermark, spec)
	if image_format.upper() == "JPEG" and output.mode != "RGB":
		output = output.convert("RGB")
	buffer = io.BytesIO()
	try:
		output.save(buffer, format=image_format.upper())
	except (KeyError, OSError, ValueError) as error:
		raise WatermarkError(f"failed to encode {image_format} output: {error}") from error
	return buffer.getvalue()


#============================================
def add_watermark_data_uri(
	source: str | bytes,
	spec: WatermarkSpec | None = None,
	image_format: str = "PNG",
) -> str:
	"""
	Watermark a data URI or raw bytes and return a data URI.
	"""
	if isinstance(source, str):
		source = decode_data_uri(source)
	return encode_data_uri(add_watermark(source, spec, image_format), image_format)


#============================================
def watermark_or_original(
	source_bytes: bytes,
	spec: WatermarkSpec | None = None,
	image_format: str = "PNG",
) -> bytes:
	"""
	Watermark an image, falling back to the unmodified source on failure.

	Args:
		source_bytes: Encoded source image.
		spec: Watermark spec.
		image_format: Output format.

	Returns:
		Watermarked bytes, or source_bytes if watermarking failed.
	"""
	try:
		return add_watermark(source_bytes, spec, image_format)
	except WatermarkError as error:
		print(f"Watermark skipped, using original image: {error}")
		return source_bytes
