"""
Pagination of content blocks onto fixed-size pages.
"""

# Standard Library
import dataclasses
import warnings

# PIP3 modules
import PIL.Image

# local repo modules
import salon_report_engine as sre
import salon_report_engine.config
import salon_report_engine.document
import salon_report_engine.measure
import salon_report_engine.rasterize


PageGeometry = sre.config.PageGeometry
ContentBlock = sre.document.ContentBlock
Diagram = sre.document.Diagram
TextMeasurer = sre.measure.TextMeasurer
Rasterizer = sre.rasterize.Rasterizer

DEFAULT_FONT_REGULAR = sre.config.DEFAULT_FONT_REGULAR
DEFAULT_FONT_BOLD = sre.config.DEFAULT_FONT_BOLD
DEFAULT_FONT_ITALIC = sre.config.DEFAULT_FONT_ITALIC
BODY_TEXT_SIZE = sre.config.BODY_TEXT_SIZE
DIAGRAM_TITLE_SIZE = sre.config.DIAGRAM_TITLE_SIZE
BLOCK_SPACING = sre.config.BLOCK_SPACING
LIST_INDENT = sre.config.LIST_INDENT
SECTION_GAP = sre.config.SECTION_GAP
IMAGE_ROW_HEIGHT = sre.config.IMAGE_ROW_HEIGHT
IMAGE_LABEL_BAND = sre.config.IMAGE_LABEL_BAND
DIAGRAM_HEIGHT = sre.config.DIAGRAM_HEIGHT
DIAGRAM_PIXEL_SIZE = sre.config.DIAGRAM_PIXEL_SIZE
BADGE_HEIGHT = sre.config.BADGE_HEIGHT

PARAGRAPH_FONTS = {
	"normal": DEFAULT_FONT_REGULAR,
	"italic": DEFAULT_FONT_ITALIC,
	"bold": DEFAULT_FONT_BOLD,
}


class LayoutOverflowWarning(UserWarning):
	"""
	A block is taller than a whole page and was placed overflowing it.
	"""


@dataclasses.dataclass
class LayoutCursor:
	page_index: int
	y: float


@dataclasses.dataclass(frozen=True)
class PlacedBlock:
	block: ContentBlock
	page_index: int
	x: float
	y: float
	width: float
	height: float

	@property
	def bottom(self) -> float:
		return self.y + self.height


#============================================
def paragraph_font(style: str) -> str:
	return PARAGRAPH_FONTS.get(style, DEFAULT_FONT_REGULAR)


#============================================
def image_column_width(geometry: PageGeometry, columns: int) -> float:
	"""
	Width of one image cell in a row.

	Args:
		geometry: Page geometry.
		columns: Column count.

	Returns:
		Cell width in millimetres, the gutter equals the page margin.
	"""
	return (geometry.content_width - (columns - 1) * geometry.margin) / columns


#============================================
def diagram_width(raster: PIL.Image.Image, geometry: PageGeometry) -> float:
	"""
	Drawn diagram width at DIAGRAM_HEIGHT, capped at the content width.
	"""
	if raster.height <= 0:
		return 0.0
	return min(geometry.content_width, DIAGRAM_HEIGHT * raster.width / raster.height)


#============================================
def measure_block(
	block: ContentBlock,
	geometry: PageGeometry,
	measurer: TextMeasurer,
) -> float:
	"""
	Measure the height a block needs at the page content width.

	Diagrams must already carry their raster.

	Args:
		block: Content block.
		geometry: Page geometry.
		measurer: Text measurer.

	Returns:
		Height in millimetres.
	"""
	width = geometry.content_width
	if block.kind == "heading":
		size = sre.config.heading_font_size(block.level)
		lines = measurer.measure_wrapped_lines(block.text, size, width, DEFAULT_FONT_BOLD)
		return sre.measure.text_block_height(lines, size)
	if block.kind == "paragraph":
		font_name = paragraph_font(block.style)
		lines = measurer.measure_wrapped_lines(block.text, BODY_TEXT_SIZE, width, font_name)
		return sre.measure.text_block_height(lines, BODY_TEXT_SIZE)
	if block.kind == "list":
		height = 0.0
		for index, item in enumerate(block.items):
			text = sre.document.list_item_prefix(index, block.ordered) + item
			lines = measurer.measure_wrapped_lines(
				text,
				BODY_TEXT_SIZE,
				width - LIST_INDENT,
				DEFAULT_FONT_REGULAR,
			)
			height += sre.measure.text_block_height(lines, BODY_TEXT_SIZE)
		return height
	if block.kind == "image_row":
		if block.has_labels:
			return IMAGE_ROW_HEIGHT + IMAGE_LABEL_BAND
		return IMAGE_ROW_HEIGHT
	if block.kind == "diagram":
		title_lines = measurer.measure_wrapped_lines(
			block.title,
			DIAGRAM_TITLE_SIZE,
			width,
			DEFAULT_FONT_BOLD,
		)
		return sre.measure.text_block_height(title_lines, DIAGRAM_TITLE_SIZE) + DIAGRAM_HEIGHT
	if block.kind == "badge":
		return BADGE_HEIGHT
	if block.kind == "section_break":
		return SECTION_GAP
	raise ValueError(f"unknown block kind: {block.kind}")


#============================================
def resolve_diagram(
	block: Diagram,
	rasterizer: Rasterizer | None,
) -> Diagram:
	"""
	Attach a raster to a diagram, rasterizing it if needed.

	Rasterizer errors propagate to the caller as DiagramRenderError.

	Args:
		block: Diagram block.
		rasterizer: Callable (markup, target_size) -> image.

	Returns:
		Diagram with raster set.
	"""
	if block.raster is not None:
		return block
	if rasterizer is None:
		rasterizer = sre.rasterize.rasterize_svg
	raster = sre.rasterize.rasterize_with_timeout(
		rasterizer,
		block.vector_markup,
		(DIAGRAM_PIXEL_SIZE, DIAGRAM_PIXEL_SIZE),
		None,
		title=block.title,
	)
	return block.with_raster(raster)


#============================================
def layout(
	document: list[ContentBlock],
	geometry: PageGeometry | None = None,
	measurer: TextMeasurer | None = None,
	rasterizer: Rasterizer | None = None,
) -> list[PlacedBlock]:
	"""
	Place blocks on pages in reading order.

	Each block is atomic: when it does not fit below the cursor, it moves
	to the top of a new page. A block that is already at the top of a
	page is placed even if it overflows, with a LayoutOverflowWarning.
	Diagrams are rasterized one at a time, in document order.

	Args:
		document: Ordered content blocks.
		geometry: Page geometry, A4 with 15 mm margins by default.
		measurer: Text measurer, ReportLab metrics by default.
		rasterizer: Diagram rasterizer, cairosvg by default.

	Returns:
		Placed blocks in input order.
	"""
	if geometry is None:
		geometry = PageGeometry()
	if measurer is None:
		measurer = sre.measure.default_measurer()

	cursor = LayoutCursor(page_index=0, y=geometry.margin)
	printable_height = geometry.content_bottom - geometry.margin
	placed: list[PlacedBlock] = []
	for block in document:
		if block.kind == "diagram":
			block = resolve_diagram(block, rasterizer)
		height = measure_block(block, geometry, measurer)

		at_page_top = cursor.y == geometry.margin
		if cursor.y + height > geometry.content_bottom and not at_page_top:
			cursor.page_index += 1
			cursor.y = geometry.margin
		if height > printable_height:
			warnings.warn(
				f"{block.kind} block of height {height:.1f}mm exceeds the "
				f"printable height {printable_height:.1f}mm on page {cursor.page_index}",
				LayoutOverflowWarning,
				stacklevel=2,
			)

		placed.append(
			PlacedBlock(
				block=block,
				page_index=cursor.page_index,
				x=geometry.margin,
				y=cursor.y,
				width=geometry.content_width,
				height=height,
			)
		)
		cursor.y += height + BLOCK_SPACING
	return placed


#============================================
def page_count(placed: list[PlacedBlock]) -> int:
	if not placed:
		return 0
	return max(item.page_index for item in placed) + 1


#============================================
def blocks_on_page(placed: list[PlacedBlock], page_index: int) -> list[PlacedBlock]:
	"""
	Placed blocks of one page, top to bottom.
	"""
	on_page = [item for item in placed if item.page_index == page_index]
	return sorted(on_page, key=lambda item: item.y)
