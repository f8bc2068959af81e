"""
Shared configuration and constants.
"""

# Standard Library
import dataclasses

# PIP3 modules
import reportlab.lib.units


POINTS_PER_MM = reportlab.lib.units.mm

# A4 portrait in millimetres
DEFAULT_PAGE_WIDTH = 210.0
DEFAULT_PAGE_HEIGHT = 297.0
DEFAULT_MARGIN = 15.0

DEFAULT_FONT_REGULAR = "Helvetica"
DEFAULT_FONT_BOLD = "Helvetica-Bold"
DEFAULT_FONT_ITALIC = "Helvetica-Oblique"
DEFAULT_FONT_BOLD_ITALIC = "Helvetica-BoldOblique"

# point size -> millimetre line height
LINE_HEIGHT_FACTOR = 0.35
TEXT_BLOCK_PADDING = 2.0
HEADING_SIZES = {
	1: 22.0,
	2: 14.0,
	3: 12.0,
}
HEADING_MIN_SIZE = 11.0
BODY_TEXT_SIZE = 10.0
LABEL_TEXT_SIZE = 9.0
DIAGRAM_TITLE_SIZE = 11.0
BADGE_TEXT_SIZE = 12.0
ESTIMATED_CHAR_WIDTH = 0.5

BLOCK_SPACING = 2.0
LIST_INDENT = 4.0
SECTION_GAP = 8.0
IMAGE_ROW_HEIGHT = 75.0
IMAGE_LABEL_BAND = 6.0
DIAGRAM_HEIGHT = 70.0
DIAGRAM_PIXEL_SIZE = 250
DIAGRAM_PADDING = 10
DIAGRAM_SCALE = 2
BADGE_HEIGHT = 12.0
BADGE_BOX_HEIGHT = 8.0
BADGE_MIN_WIDTH = 70.0
BADGE_TEXT_INSET = 5.0
BADGE_CORNER_RADIUS = 3.0
HEADER_RULE_OFFSET = 5.0
HEADER_RULE_WIDTH = 1.0
SECTION_RULE_WIDTH = 0.2

COLOR_EMERALD = (16, 185, 129)
COLOR_AMBER = (245, 158, 11)
COLOR_RED = (220, 38, 38)
COLOR_GREY = (107, 114, 128)
COLOR_RULE = (209, 213, 219)
BADGE_COLORS = {
	"emerald": COLOR_EMERALD,
	"amber": COLOR_AMBER,
	"red": COLOR_RED,
	"grey": COLOR_GREY,
}

VIEWPORT_MIN_SCALE = 0.5
VIEWPORT_MAX_SCALE = 5.0
VIEWPORT_ZOOM_SENSITIVITY = 0.001
VIEWPORT_ZOOM_STEP = 1.25

WATERMARK_RELATIVE_WIDTH = 0.15
WATERMARK_PADDING_FRACTION = 0.03
WATERMARK_OPACITY = 0.7
WATERMARK_ANCHOR = "bottom-right"
WATERMARK_ANCHORS = ("bottom-right", "bottom-left", "top-right", "top-left")
WATERMARK_RASTER_WIDTH = 400


@dataclasses.dataclass(frozen=True)
class PageGeometry:
	width: float = DEFAULT_PAGE_WIDTH
	height: float = DEFAULT_PAGE_HEIGHT
	margin: float = DEFAULT_MARGIN

	@property
	def content_width(self) -> float:
		return self.width - 2.0 * self.margin

	@property
	def content_bottom(self) -> float:
		return self.height - self.margin


@dataclasses.dataclass
class RenderConfig:
	geometry: PageGeometry
	title: str | None
	skip_failed_diagrams: bool
	diagram_timeout: float | None


@dataclasses.dataclass
class ExportResult:
	pages: int
	blocks: int
	skipped_diagrams: list[str]
	output_path: str | None


#============================================
def mm_to_points(value: float) -> float:
	"""
	Convert millimetres to points.

	Args:
		value: Millimetre value.

	Returns:
		Points value.
	"""
	return value * POINTS_PER_MM


#============================================
def heading_font_size(level: int) -> float:
	"""
	Font size used for a heading level.

	Args:
		level: Heading level, 1 is the document title.

	Returns:
		Font size in points.
	"""
	return HEADING_SIZES.get(level, HEADING_MIN_SIZE)


#============================================
def points_to_mm(value: float) -> float:
	"""
	Convert points to millimetres.
	"""
	return value / POINTS_PER_MM
