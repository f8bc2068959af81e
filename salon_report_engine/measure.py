"""
Text wrapping and height measurement.
"""

# Standard Library
import math

# PIP3 modules
import reportlab.lib.utils
import reportlab.pdfbase.pdfmetrics

# local repo modules
import salon_report_engine as sre
import salon_report_engine.config


DEFAULT_FONT_REGULAR = sre.config.DEFAULT_FONT_REGULAR
LINE_HEIGHT_FACTOR = sre.config.LINE_HEIGHT_FACTOR
TEXT_BLOCK_PADDING = sre.config.TEXT_BLOCK_PADDING
ESTIMATED_CHAR_WIDTH = sre.config.ESTIMATED_CHAR_WIDTH


#============================================
def line_height(font_size: float) -> float:
	"""
	Line height in millimetres for a point size.
	"""
	return font_size * LINE_HEIGHT_FACTOR


#============================================
def text_block_height(line_count: int, font_size: float) -> float:
	"""
	Height of a wrapped text block including its trailing padding.

	Args:
		line_count: Number of wrapped lines.
		font_size: Font size in points.

	Returns:
		Height in millimetres.
	"""
	return line_count * line_height(font_size) + TEXT_BLOCK_PADDING


#============================================
def font_is_available(font_name: str) -> bool:
	"""
	Check whether ReportLab has metrics for a font.
	"""
	if font_name in reportlab.pdfbase.pdfmetrics.standardFonts:
		return True
	return font_name in reportlab.pdfbase.pdfmetrics.getRegisteredFontNames()


class TextMeasurer:
	"""
	Wraps text with ReportLab font metrics, the same metrics the PDF
	canvas uses when the text is drawn.
	"""

	def wrap(self, text: str, font_name: str, font_size: float, max_width: float) -> list[str]:
		"""
		Wrap text to a width.

		Args:
			text: Text to wrap, explicit newlines start new lines.
			font_name: ReportLab font name.
			font_size: Font size in points.
			max_width: Available width in millimetres.

		Returns:
			Wrapped lines.
		"""
		if not text.strip():
			return []
		width_points = sre.config.mm_to_points(max_width)
		return reportlab.lib.utils.simpleSplit(text, font_name, font_size, width_points)

	def measure_wrapped_lines(
		self,
		text: str,
		font_size: float,
		max_width: float,
		font_name: str = DEFAULT_FONT_REGULAR,
	) -> int:
		return len(self.wrap(text, font_name, font_size, max_width))


class EstimatingTextMeasurer(TextMeasurer):
	"""
	Approximate wrapping from an average character width.

	Used when no font metrics are available. Each character is taken to
	be ESTIMATED_CHAR_WIDTH * size points wide, so line counts are an
	estimate and drawn text may wrap differently.
	"""

	def wrap(self, text: str, font_name: str, font_size: float, max_width: float) -> list[str]:
		if not text.strip():
			return []
		char_width = ESTIMATED_CHAR_WIDTH * font_size
		width_points = sre.config.mm_to_points(max_width)
		max_chars = max(1, int(math.floor(width_points / char_width)))
		lines: list[str] = []
		for paragraph in text.split("\n"):
			current = ""
			for word in paragraph.split():
				while len(word) > max_chars:
					if current:
						lines.append(current)
						current = ""
					lines.append(word[:max_chars])
					word = word[max_chars:]
				if not word:
					continue
				candidate = f"{current} {word}" if current else word
				if len(candidate) <= max_chars:
					current = candidate
					continue
				lines.append(current)
				current = word
			lines.append(current)
		return lines


class FontAwareMeasurer(TextMeasurer):
	"""
	Uses ReportLab metrics for registered fonts and the estimate otherwise.
	"""

	def __init__(self) -> None:
		self._fallback = EstimatingTextMeasurer()

	def wrap(self, text: str, font_name: str, font_size: float, max_width: float) -> list[str]:
		if font_is_available(font_name):
			return super().wrap(text, font_name, font_size, max_width)
		return self._fallback.wrap(text, font_name, font_size, max_width)


#============================================
def default_measurer() -> TextMeasurer:
	"""
	Measurer used when the caller does not supply one.
	"""
	return FontAwareMeasurer()
