"""
PDF rendering of placed blocks.
"""

# Standard Library
import io
import pathlib
import re
import unicodedata

# PIP3 modules
import PIL.Image
import reportlab.lib.utils
import reportlab.pdfbase.pdfmetrics
import reportlab.pdfgen.canvas

# local repo modules
import salon_report_engine as sre
import salon_report_engine.builders
import salon_report_engine.config
import salon_report_engine.document
import salon_report_engine.layout
import salon_report_engine.measure
import salon_report_engine.rasterize


PageGeometry = sre.config.PageGeometry
RenderConfig = sre.config.RenderConfig
ExportResult = sre.config.ExportResult
PlacedBlock = sre.layout.PlacedBlock
TextMeasurer = sre.measure.TextMeasurer

mm_to_points = sre.config.mm_to_points
line_height = sre.measure.line_height

DEFAULT_FONT_REGULAR = sre.config.DEFAULT_FONT_REGULAR
DEFAULT_FONT_BOLD = sre.config.DEFAULT_FONT_BOLD
BODY_TEXT_SIZE = sre.config.BODY_TEXT_SIZE
LABEL_TEXT_SIZE = sre.config.LABEL_TEXT_SIZE
DIAGRAM_TITLE_SIZE = sre.config.DIAGRAM_TITLE_SIZE
BADGE_TEXT_SIZE = sre.config.BADGE_TEXT_SIZE
LIST_INDENT = sre.config.LIST_INDENT
IMAGE_ROW_HEIGHT = sre.config.IMAGE_ROW_HEIGHT
DIAGRAM_HEIGHT = sre.config.DIAGRAM_HEIGHT
BADGE_BOX_HEIGHT = sre.config.BADGE_BOX_HEIGHT
BADGE_MIN_WIDTH = sre.config.BADGE_MIN_WIDTH
BADGE_TEXT_INSET = sre.config.BADGE_TEXT_INSET
BADGE_CORNER_RADIUS = sre.config.BADGE_CORNER_RADIUS
HEADER_RULE_OFFSET = sre.config.HEADER_RULE_OFFSET
HEADER_RULE_WIDTH = sre.config.HEADER_RULE_WIDTH
SECTION_RULE_WIDTH = sre.config.SECTION_RULE_WIDTH
COLOR_EMERALD = sre.config.COLOR_EMERALD
COLOR_RULE = sre.config.COLOR_RULE

# first baseline sits this far down a line box
BASELINE_RATIO = 0.8


class PageWriter:
	"""
	Draws on a ReportLab canvas using top-left millimetre coordinates.
	"""

	def __init__(
		self,
		pdf: reportlab.pdfgen.canvas.Canvas,
		geometry: PageGeometry,
		measurer: TextMeasurer,
	) -> None:
		self.pdf = pdf
		self.geometry = geometry
		self.measurer = measurer

	def px(self, x: float) -> float:
		return mm_to_points(x)

	def py(self, y: float) -> float:
		return mm_to_points(self.geometry.height - y)

	def set_fill(self, color: tuple[int, int, int]) -> None:
		self.pdf.setFillColorRGB(color[0] / 255.0, color[1] / 255.0, color[2] / 255.0)

	def set_stroke(self, color: tuple[int, int, int]) -> None:
		self.pdf.setStrokeColorRGB(color[0] / 255.0, color[1] / 255.0, color[2] / 255.0)

	#============================================
	def draw_text(
		self,
		text: str,
		x: float,
		y: float,
		width: float,
		font_name: str,
		font_size: float,
	) -> float:
		"""
		Draw wrapped text with its top edge at y.

		Args:
			text: Text to draw.
			x: Left edge in millimetres.
			y: Top edge in millimetres.
			width: Wrap width in millimetres.
			font_name: ReportLab font name.
			font_size: Font size in points.

		Returns:
			Height used including padding, matching the layout measurement.
		"""
		lines = self.measurer.wrap(text, font_name, font_size, width)
		self.pdf.setFont(font_name, font_size)
		step = line_height(font_size)
		for index, line in enumerate(lines):
			baseline = y + (index + BASELINE_RATIO) * step
			self.pdf.drawString(self.px(x), self.py(baseline), line)
		return sre.measure.text_block_height(len(lines), font_size)

	def draw_rule(self, y: float, color: tuple[int, int, int], width: float) -> None:
		self.set_stroke(color)
		self.pdf.setLineWidth(width)
		self.pdf.line(
			self.px(self.geometry.margin),
			self.py(y),
			self.px(self.geometry.width - self.geometry.margin),
			self.py(y),
		)

	def draw_image(
		self,
		image: PIL.Image.Image,
		x: float,
		y: float,
		width: float,
		height: float,
	) -> None:
		"""
		Fit an image inside a box, centered, keeping its aspect ratio.
		"""
		reader = reportlab.lib.utils.ImageReader(image)
		self.pdf.drawImage(
			reader,
			self.px(x),
			self.py(y + height),
			width=mm_to_points(width),
			height=mm_to_points(height),
			mask="auto",
			preserveAspectRatio=True,
			anchor="c",
		)

	def draw_placeholder(self, x: float, y: float, width: float, height: float) -> None:
		self.set_stroke(COLOR_RULE)
		self.pdf.setLineWidth(0.5)
		self.pdf.rect(
			self.px(x),
			self.py(y + height),
			mm_to_points(width),
			mm_to_points(height),
			stroke=1,
			fill=0,
		)


#============================================
def decode_row_image(data: bytes | None) -> PIL.Image.Image | None:
	"""
	Decode image row bytes, None for missing or unreadable images.
	"""
	if data is None:
		return None
	try:
		image = PIL.Image.open(io.BytesIO(data))
		image.load()
	except (PIL.UnidentifiedImageError, OSError, ValueError) as error:
		print(f"Image skipped in PDF: {error}")
		return None
	return image


#============================================
def draw_heading(writer: PageWriter, item: PlacedBlock) -> None:
	block = item.block
	if block.level == 1:
		writer.draw_rule(item.y - HEADER_RULE_OFFSET, COLOR_EMERALD, HEADER_RULE_WIDTH)
	writer.set_fill((0, 0, 0))
	size = sre.config.heading_font_size(block.level)
	writer.draw_text(block.text, item.x, item.y, item.width, DEFAULT_FONT_BOLD, size)


#============================================
def draw_paragraph(writer: PageWriter, item: PlacedBlock) -> None:
	block = item.block
	writer.set_fill((0, 0, 0))
	font_name = sre.layout.paragraph_font(block.style)
	writer.draw_text(block.text, item.x, item.y, item.width, font_name, BODY_TEXT_SIZE)


#============================================
def draw_list(writer: PageWriter, item: PlacedBlock) -> None:
	block = item.block
	writer.set_fill((0, 0, 0))
	y = item.y
	for index, entry in enumerate(block.items):
		text = sre.document.list_item_prefix(index, block.ordered) + entry
		y += writer.draw_text(
			text,
			item.x + LIST_INDENT,
			y,
			item.width - LIST_INDENT,
			DEFAULT_FONT_REGULAR,
			BODY_TEXT_SIZE,
		)


#============================================
def draw_image_row(writer: PageWriter, item: PlacedBlock) -> None:
	"""
	Draw images side by side with centered captions below.
	"""
	block = item.block
	cell_width = sre.layout.image_column_width(writer.geometry, block.columns)
	gutter = writer.geometry.margin
	for index, data in enumerate(block.images):
		cell_x = item.x + index * (cell_width + gutter)
		image = decode_row_image(data)
		if image is None:
			writer.draw_placeholder(cell_x, item.y, cell_width, IMAGE_ROW_HEIGHT)
		else:
			writer.draw_image(image, cell_x, item.y, cell_width, IMAGE_ROW_HEIGHT)
		if block.has_labels and block.labels[index]:
			writer.set_fill((0, 0, 0))
			writer.pdf.setFont(DEFAULT_FONT_REGULAR, LABEL_TEXT_SIZE)
			writer.pdf.drawCentredString(
				writer.px(cell_x + cell_width / 2.0),
				writer.py(item.y + IMAGE_ROW_HEIGHT + 4.0),
				block.labels[index],
			)


#============================================
def draw_diagram(writer: PageWriter, item: PlacedBlock) -> None:
	block = item.block
	writer.set_fill((0, 0, 0))
	title_height = writer.draw_text(
		block.title,
		item.x,
		item.y,
		item.width,
		DEFAULT_FONT_BOLD,
		DIAGRAM_TITLE_SIZE,
	)
	if block.raster is None:
		return
	width = sre.layout.diagram_width(block.raster, writer.geometry)
	# draw_image centers in its box, so give it the exact drawn size
	writer.draw_image(block.raster.convert("RGB"), item.x, item.y + title_height, width, DIAGRAM_HEIGHT)


#============================================
def draw_badge(writer: PageWriter, item: PlacedBlock) -> None:
	"""
	Draw a colored rounded rectangle with white bold text.
	"""
	block = item.block
	text_width = reportlab.pdfbase.pdfmetrics.stringWidth(block.text, DEFAULT_FONT_BOLD, BADGE_TEXT_SIZE)
	box_width = max(BADGE_MIN_WIDTH, sre.config.points_to_mm(text_width) + 2.0 * BADGE_TEXT_INSET)
	box_width = min(box_width, item.width)
	writer.set_fill(block.color)
	writer.pdf.roundRect(
		writer.px(item.x),
		writer.py(item.y + BADGE_BOX_HEIGHT),
		mm_to_points(box_width),
		mm_to_points(BADGE_BOX_HEIGHT),
		mm_to_points(BADGE_CORNER_RADIUS),
		stroke=0,
		fill=1,
	)
	writer.set_fill((255, 255, 255))
	writer.pdf.setFont(DEFAULT_FONT_BOLD, BADGE_TEXT_SIZE)
	writer.pdf.drawString(writer.px(item.x + BADGE_TEXT_INSET), writer.py(item.y + 5.5), block.text)
	writer.set_fill((0, 0, 0))


#============================================
def draw_section_break(writer: PageWriter, item: PlacedBlock) -> None:
	# no rule at the very top of a page
	if item.y == writer.geometry.margin:
		return
	writer.draw_rule(item.y, COLOR_RULE, SECTION_RULE_WIDTH)


DRAWERS = {
	"heading": draw_heading,
	"paragraph": draw_paragraph,
	"list": draw_list,
	"image_row": draw_image_row,
	"diagram": draw_diagram,
	"badge": draw_badge,
	"section_break": draw_section_break,
}


#============================================
def render_pdf(
	placed: list[PlacedBlock],
	geometry: PageGeometry | None = None,
	output_path: pathlib.Path | None = None,
	title: str | None = None,
	measurer: TextMeasurer | None = None,
) -> bytes:
	"""
	Render placed blocks to a multi-page PDF.

	Args:
		placed: Layout output.
		geometry: Page geometry used for the layout.
		output_path: Optional file to write.
		title: Optional PDF title metadata.
		measurer: Text measurer, must match the one used for layout.

	Returns:
		PDF bytes.
	"""
	if geometry is None:
		geometry = PageGeometry()
	if measurer is None:
		measurer = sre.measure.default_measurer()
	buffer = io.BytesIO()
	pdf = reportlab.pdfgen.canvas.Canvas(
		buffer,
		pagesize=(mm_to_points(geometry.width), mm_to_points(geometry.height)),
	)
	if title:
		pdf.setTitle(title)
	writer = PageWriter(pdf, geometry, measurer)

	pages = sre.layout.page_count(placed)
	for page_index in range(pages):
		for item in sre.layout.blocks_on_page(placed, page_index):
			DRAWERS[item.block.kind](writer, item)
		pdf.showPage()
	if pages == 0:
		pdf.showPage()
	pdf.save()

	data = buffer.getvalue()
	if output_path is not None:
		output_path = pathlib.Path(output_path)
		output_path.parent.mkdir(parents=True, exist_ok=True)
		output_path.write_bytes(data)
	return data


#============================================
def export_document(
	document: list[sre.document.ContentBlock],
	output_path: pathlib.Path | None,
	config: RenderConfig | None = None,
	rasterizer: sre.rasterize.Rasterizer | None = None,
	measurer: TextMeasurer | None = None,
) -> tuple[ExportResult, bytes]:
	"""
	Rasterize diagrams, lay out and render a document.

	Args:
		document: Content blocks.
		output_path: Optional PDF output path.
		config: Render configuration.
		rasterizer: Diagram rasterizer.
		measurer: Text measurer.

	Returns:
		Tuple of (ExportResult, PDF bytes).
	"""
	if config is None:
		config = default_render_config()
	if measurer is None:
		measurer = sre.measure.default_measurer()
	prepared, skipped = sre.builders.prepare_diagrams(
		document,
		rasterizer,
		skip_failures=config.skip_failed_diagrams,
		timeout=config.diagram_timeout,
	)
	placed = sre.layout.layout(prepared, config.geometry, measurer, rasterizer)
	data = render_pdf(placed, config.geometry, output_path, config.title, measurer)
	result = ExportResult(
		pages=max(1, sre.layout.page_count(placed)),
		blocks=len(placed),
		skipped_diagrams=skipped,
		output_path=str(output_path) if output_path is not None else None,
	)
	return (result, data)


#============================================
def default_render_config(title: str | None = None) -> RenderConfig:
	return RenderConfig(
		geometry=PageGeometry(),
		title=title,
		skip_failed_diagrams=True,
		diagram_timeout=None,
	)


#============================================
def report_filename(style_name: str, prefix: str = "plano-de-corte") -> str:
	"""
	Build the download file name for a report.

	Args:
		style_name: Style or report name.
		prefix: File name prefix.

	Returns:
		File name like "plano-de-corte-bob-curto.pdf".
	"""
	normalized = unicodedata.normalize("NFKD", style_name)
	normalized = normalized.encode("ascii", "ignore").decode("ascii")
	slug = re.sub(r"\s+", "-", normalized.strip()).lower()
	slug = re.sub(r"[^a-z0-9-]", "", slug).strip("-")
	if not slug:
		return f"{prefix}.pdf"
	return f"{prefix}-{slug}.pdf"
