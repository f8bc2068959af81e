import random
import warnings

import PIL.Image
import pytest

import salon_report_engine as sre
import salon_report_engine.config
import salon_report_engine.document
import salon_report_engine.layout
import salon_report_engine.measure
import salon_report_engine.rasterize


doc = sre.document
PageGeometry = sre.config.PageGeometry
LayoutOverflowWarning = sre.layout.LayoutOverflowWarning

LOREM = (
	"Lorem ipsum dolor sit amet, consectetur adipiscing elit, sed do eiusmod "
	"tempor incididunt ut labore et dolore magna aliqua. Ut enim ad minim veniam, "
	"quis nostrud exercitation ullamco laboris nisi ut aliquip ex ea commodo "
	"consequat. Duis aute irure dolor in reprehenderit in voluptate velit esse."
)


#============================================
def fake_raster(markup: str, target_size: tuple[int, int]) -> PIL.Image.Image:
	return PIL.Image.new("RGB", target_size, (255, 255, 255))


#============================================
def failing_raster(markup: str, target_size: tuple[int, int]) -> PIL.Image.Image:
	raise sre.rasterize.DiagramRenderError("renderer offline")


#============================================
def random_document(seed: int) -> list:
	"""
	Build a pseudo random document mixing every block kind.
	"""
	rng = random.Random(seed)
	words = LOREM.split()
	blocks = []
	for _ in range(rng.randint(5, 60)):
		choice = rng.randint(0, 6)
		text = " ".join(rng.choice(words) for _ in range(rng.randint(1, 120)))
		if choice == 0:
			blocks.append(doc.Heading(text[:80], level=rng.randint(1, 4)))
		elif choice == 1:
			blocks.append(doc.Paragraph(text, style=rng.choice(doc.PARAGRAPH_STYLES)))
		elif choice == 2:
			items = [text[: rng.randint(1, len(text))] for _ in range(rng.randint(1, 15))]
			blocks.append(doc.ListBlock(items, ordered=rng.random() < 0.5))
		elif choice == 3:
			columns = rng.choice((2, 3))
			labels = ("A",) * columns if rng.random() < 0.5 else ()
			blocks.append(doc.ImageRow((None,) * columns, labels=labels, columns=columns))
		elif choice == 4:
			blocks.append(doc.Diagram(text[:40], "<svg/>"))
		elif choice == 5:
			blocks.append(doc.Badge(text[:30], "emerald"))
		else:
			blocks.append(doc.SectionBreak())
	return blocks


#============================================
def test_reference_a4_document() -> None:
	"""
	Heading, paragraph and twelve items fit on the first A4 page.
	"""
	geometry = PageGeometry()
	assert geometry.content_width == 180.0
	assert geometry.content_bottom == 282.0
	document = [
		doc.Heading("Plano X"),
		doc.Paragraph(LOREM[:300]),
		doc.ListBlock([f"Item {index}" for index in range(12)]),
		doc.ImageRow((b"a", b"b"), columns=2),
	]
	placed = sre.layout.layout(document, geometry)
	assert [item.block for item in placed] == document
	first, second, third, fourth = placed

	assert first.y == 15.0
	assert first.x == 15.0 and first.width == 180.0
	assert first.height == pytest.approx(22.0 * 0.35 + 2.0)
	assert second.y == pytest.approx(first.bottom + 2.0)
	assert third.height == pytest.approx(12 * (10.0 * 0.35 + 2.0))
	combined = third.bottom - 15.0
	assert combined <= 267.0
	assert third.page_index == 0
	assert fourth.height == 75.0
	assert fourth.page_index == 0
	assert fourth.y == pytest.approx(third.bottom + 2.0)


#============================================
def test_list_moves_whole_to_next_page() -> None:
	"""
	A list that does not fit below the cursor starts the next page.
	"""
	document = [doc.Badge("OK", "emerald") for _ in range(18)]
	document.append(doc.ListBlock(["one", "two", "three"]))
	placed = sre.layout.layout(document)
	assert placed[17].bottom == pytest.approx(15.0 + 18 * 14.0 - 2.0)
	assert placed[-1].page_index == 1
	assert placed[-1].y == 15.0
	assert placed[-1].height == pytest.approx(3 * 5.5)


#============================================
def test_block_heights() -> None:
	geometry = PageGeometry()
	measurer = sre.measure.default_measurer()
	measure = sre.layout.measure_block
	assert measure(doc.Badge("x"), geometry, measurer) == 12.0
	assert measure(doc.SectionBreak(), geometry, measurer) == 8.0
	assert measure(doc.ImageRow((None, None, None), ("a", "b", "c"), columns=3), geometry, measurer) == 81.0
	assert measure(doc.ImageRow((None, None), ("", ""), columns=2), geometry, measurer) == 75.0
	assert measure(doc.Heading("Title", level=2), geometry, measurer) == pytest.approx(14.0 * 0.35 + 2.0)
	assert measure(doc.Paragraph("   "), geometry, measurer) == pytest.approx(2.0)
	assert sre.layout.image_column_width(geometry, 2) == pytest.approx(82.5)
	assert sre.layout.image_column_width(geometry, 3) == pytest.approx(50.0)


#============================================
def test_diagram_height_and_width() -> None:
	raster = PIL.Image.new("RGB", (500, 250), (255, 255, 255))
	block = doc.Diagram("Vista lateral", "<svg/>", raster=raster)
	placed = sre.layout.layout([block])
	assert placed[0].height == pytest.approx(11.0 * 0.35 + 2.0 + 70.0)
	assert sre.layout.diagram_width(raster, PageGeometry()) == pytest.approx(140.0)
	wide = PIL.Image.new("RGB", (1000, 100))
	assert sre.layout.diagram_width(wide, PageGeometry()) == 180.0


#============================================
def test_diagrams_rasterized_in_order() -> None:
	calls = []

	def recording_raster(markup: str, target_size: tuple[int, int]) -> PIL.Image.Image:
		calls.append((markup, target_size))
		return fake_raster(markup, target_size)

	document = [doc.Diagram("a", "<svg id='1'/>"), doc.Paragraph("x"), doc.Diagram("b", "<svg id='2'/>")]
	placed = sre.layout.layout(document, rasterizer=recording_raster)
	assert calls == [("<svg id='1'/>", (250, 250)), ("<svg id='2'/>", (250, 250))]
	assert placed[0].block.raster is not None
	# the input document is not modified
	assert document[0].raster is None


#============================================
def test_rasterizer_error_propagates() -> None:
	document = [doc.Heading("Plano"), doc.Diagram("Vista frontal", "<svg/>")]
	with pytest.raises(sre.rasterize.DiagramRenderError) as excinfo:
		sre.layout.layout(document, rasterizer=failing_raster)
	assert excinfo.value.title == "Vista frontal"


#============================================
def test_oversized_block_warns_and_overflows() -> None:
	measurer = sre.measure.EstimatingTextMeasurer()
	giant = doc.Paragraph("palavra " * 6000)
	document = [doc.Heading("Antes"), giant, doc.Paragraph("depois")]
	with pytest.warns(LayoutOverflowWarning):
		placed = sre.layout.layout(document, measurer=measurer)
	assert placed[1].page_index == 1
	assert placed[1].y == 15.0
	assert placed[1].bottom > 282.0
	assert placed[2].page_index == 2
	assert sre.layout.page_count(placed) == 3


#============================================
def test_no_warning_for_normal_document() -> None:
	with warnings.catch_warnings():
		warnings.simplefilter("error", LayoutOverflowWarning)
		sre.layout.layout([doc.Heading("Plano"), doc.Paragraph(LOREM)])


#============================================
def test_order_and_no_split_properties() -> None:
	"""
	Order is preserved and blocks only overflow from the page top.
	"""
	geometry = PageGeometry()
	measurer = sre.measure.EstimatingTextMeasurer()
	for seed in range(25):
		document = random_document(seed)
		with warnings.catch_warnings():
			warnings.simplefilter("ignore", LayoutOverflowWarning)
			placed = sre.layout.layout(document, geometry, measurer, fake_raster)
		assert len(placed) == len(document)
		ordered = sorted(placed, key=lambda item: (item.page_index, item.y))
		assert [item.block for item in ordered] == document
		for item in placed:
			if item.y != geometry.margin:
				assert item.bottom <= geometry.content_bottom + 1e-9
		pages = [item.page_index for item in placed]
		assert pages == sorted(pages)
		assert pages[0] == 0
		assert all(later - earlier <= 1 for earlier, later in zip(pages, pages[1:]))


#============================================
def test_layout_is_deterministic() -> None:
	measurer = sre.measure.EstimatingTextMeasurer()
	for seed in (3, 11, 42):
		document = random_document(seed)
		with warnings.catch_warnings():
			warnings.simplefilter("ignore", LayoutOverflowWarning)
			first = sre.layout.layout(document, None, measurer, fake_raster)
			second = sre.layout.layout(document, None, measurer, fake_raster)
		assert [(p.page_index, p.x, p.y, p.width, p.height) for p in first] == [
			(p.page_index, p.x, p.y, p.width, p.height) for p in second
		]


#============================================
def test_custom_geometry_and_helpers() -> None:
	geometry = PageGeometry(width=100.0, height=60.0, margin=10.0)
	document = [doc.Badge("a"), doc.Badge("b"), doc.Badge("c"), doc.Badge("d")]
	placed = sre.layout.layout(document, geometry)
	# 10 + 12 + 2 + 12 + 2 + 12 = 50 fits, the fourth badge does not
	assert [item.page_index for item in placed] == [0, 0, 0, 1]
	assert sre.layout.page_count(placed) == 2
	assert sre.layout.page_count([]) == 0
	assert [item.block.text for item in sre.layout.blocks_on_page(placed, 1)] == ["d"]


#============================================
def test_empty_document() -> None:
	assert sre.layout.layout([]) == []


#============================================
def test_unexpected_rasterizer_error_becomes_render_error() -> None:
	def crashing_raster(markup: str, target_size: tuple[int, int]) -> PIL.Image.Image:
		raise RuntimeError("renderer process died")

	with pytest.raises(sre.rasterize.DiagramRenderError) as excinfo:
		sre.layout.layout([doc.Diagram("Topo", "<svg/>")], rasterizer=crashing_raster)
	assert excinfo.value.title == "Topo"
