"""
Turn report models into documents of content blocks.
"""

# Standard Library
import re

# local repo modules
import salon_report_engine as sre
import salon_report_engine.document
import salon_report_engine.rasterize
import salon_report_engine.reports


Heading = sre.document.Heading
Paragraph = sre.document.Paragraph
ListBlock = sre.document.ListBlock
ImageRow = sre.document.ImageRow
Diagram = sre.document.Diagram
Badge = sre.document.Badge
SectionBreak = sre.document.SectionBreak
ContentBlock = sre.document.ContentBlock

VERDICT_COLOR_KEYS = {
	"Altamente Recomendado": "emerald",
	"Recomendado com Adaptações": "amber",
	"Não Recomendado": "red",
}
BOLD_MARKER_PATTERN = re.compile(r"\*\*(.*?)\*\*")


#============================================
def verdict_color_key(verdict: str) -> str:
	return VERDICT_COLOR_KEYS.get(verdict.strip(), "grey")


#============================================
def section(title: str) -> list[ContentBlock]:
	"""
	Separator rule followed by a section heading.
	"""
	return [SectionBreak(), Heading(title, level=2)]


#============================================
def titled_list(title: str, items: tuple[str, ...], ordered: bool = False) -> list[ContentBlock]:
	"""
	Subheading and list, nothing when the list is empty.
	"""
	if not items:
		return []
	return [Heading(title, level=3), ListBlock(items, ordered=ordered)]


#============================================
def image_row(
	images: tuple[bytes | None, ...],
	labels: tuple[str, ...],
	columns: int,
) -> list[ContentBlock]:
	"""
	Image row holding only the images that exist, nothing when there are none.
	"""
	if not labels:
		labels = ("",) * len(images)
	cells = [(image, label) for image, label in zip(images, labels) if image is not None]
	if not cells:
		return []
	return [
		ImageRow(
			images=tuple(image for image, _label in cells),
			labels=tuple(label for _image, label in cells),
			columns=columns,
		)
	]


#============================================
def diagram_blocks(title: str, diagrams: tuple[sre.reports.DiagramSpec, ...]) -> list[ContentBlock]:
	if not diagrams:
		return []
	blocks = section(title)
	for diagram in diagrams:
		blocks.append(Diagram(title=diagram.title, vector_markup=diagram.svg))
	return blocks


#============================================
def build_hairstylist_document(
	report: sre.reports.HairstylistReport,
	client_image: bytes | None = None,
	reference_image: bytes | None = None,
	result_image: bytes | None = None,
) -> list[ContentBlock]:
	"""
	Build the combined viability and cutting plan document.

	Args:
		report: Hairstylist report.
		client_image: Client photo bytes.
		reference_image: Reference photo bytes.
		result_image: Generated result bytes, already watermarked.

	Returns:
		Content blocks.
	"""
	plan = report.cutting_plan
	viability = report.viability_analysis
	blocks: list[ContentBlock] = [
		Heading(f"Plano de Corte: {plan.style_name}", level=1),
		Paragraph(plan.description, style="italic"),
	]

	row = image_row(
		(client_image, reference_image, result_image),
		("Cliente", "Referência", "Resultado (IA)"),
		columns=3,
	)
	if row:
		blocks.extend(section("Visualização"))
		blocks.extend(row)

	blocks.extend(section("Análise de Viabilidade"))
	blocks.append(Badge(viability.verdict, verdict_color_key(viability.verdict)))
	blocks.append(Heading("Justificativa:", level=4))
	blocks.append(Paragraph(viability.justification))
	if viability.adaptation_recommendations:
		blocks.append(Heading("Adaptações Recomendadas:", level=4))
		blocks.append(Paragraph(viability.adaptation_recommendations))

	visagism = report.reference_visagism
	if visagism is not None:
		blocks.extend(section("Visagismo da Referência"))
		blocks.append(
			ListBlock(
				(
					f"Formato do Rosto: {visagism.face_shape}",
					f"Testa: {visagism.key_facial_features.forehead}",
					f"Maxilar: {visagism.key_facial_features.jawline}",
					f"Nariz: {visagism.key_facial_features.nose}",
					f"Tipo de Fio: {visagism.hair_analysis.hair_type}",
					f"Densidade: {visagism.hair_analysis.hair_density}",
				)
			)
		)
		if visagism.style_harmony:
			blocks.append(Paragraph(visagism.style_harmony, style="italic"))

	blocks.extend(section("Plano de Execução Técnico"))
	blocks.extend(titled_list("Ferramentas e Acessórios", plan.tools + plan.accessories))
	blocks.extend(titled_list("Preparação", plan.preparation_steps, ordered=True))
	blocks.extend(titled_list("Passo a Passo do Corte", plan.steps, ordered=True))
	blocks.extend(titled_list("Finalização", plan.finishing_steps, ordered=True))

	blocks.extend(diagram_blocks("Diagramas da Técnica", plan.diagrams))
	return blocks


#============================================
def build_cutting_plan_document(
	plan: sre.reports.CuttingPlan,
	reference_image: bytes | None = None,
	result_image: bytes | None = None,
) -> list[ContentBlock]:
	"""
	Build the standalone cutting plan document.
	"""
	blocks: list[ContentBlock] = [
		Heading(plan.style_name, level=1),
		Paragraph(plan.description),
	]
	row = image_row((reference_image, result_image), (), columns=2)
	if row:
		blocks.extend(section("Imagens de Referência e Resultado"))
		blocks.extend(row)
	blocks.extend(titled_list("Ferramentas Necessárias", plan.tools))
	blocks.extend(titled_list("Passo a Passo", plan.steps, ordered=True))
	blocks.extend(diagram_blocks("Diagramas", plan.diagrams))
	return blocks


#============================================
def build_colorist_document(
	report: sre.reports.ColoristReport,
	client_image: bytes | None = None,
	try_on_image: bytes | None = None,
) -> list[ContentBlock]:
	"""
	Build the colorimetry document.

	Args:
		report: Colorist report.
		client_image: Client photo bytes.
		try_on_image: Generated try-on bytes, already watermarked.

	Returns:
		Content blocks.
	"""
	analysis = report.visagism_and_colorimetry_analysis
	blocks: list[ContentBlock] = [Heading("Relatório de Colorimetria Expert", level=1)]
	row = image_row((client_image, try_on_image), ("Antes", "Depois"), columns=2)
	if row:
		blocks.append(Heading("Antes e Depois", level=4))
		blocks.extend(row)

	blocks.extend(section("Análise de Visagismo e Colorimetria"))
	blocks.append(Paragraph(f"Subtom de Pele: {analysis.skin_tone}"))
	blocks.append(Paragraph(f"Contraste Pessoal: {analysis.contrast}"))
	blocks.append(Paragraph(analysis.recommendation, style="italic"))

	blocks.extend(section("Diagnóstico e Produtos"))
	blocks.append(Heading("Diagnóstico Inicial:", level=4))
	blocks.append(Paragraph(report.initial_diagnosis))
	if report.products:
		blocks.append(Heading("Produtos Necessários:", level=4))
		blocks.append(ListBlock(report.products))

	blocks.extend(section(f"Técnica de Mechas: {report.mechas_technique.name}"))
	blocks.append(Paragraph(report.mechas_technique.description))
	steps = report.application_steps
	blocks.extend(titled_list("Preparação", steps.preparation))
	blocks.extend(titled_list("Aplicação das Mechas", steps.mechas))
	blocks.extend(titled_list("Aplicação da Cor de Base", steps.base_color))
	blocks.extend(titled_list("Tonalização", steps.toning))
	blocks.extend(titled_list("Tratamento", steps.treatment))

	care = report.post_chemical_care
	if care is not None:
		blocks.extend(section("Cuidados Pós-Química"))
		blocks.append(Paragraph(care.recommendation))
		blocks.extend(titled_list("Produtos Recomendados", care.products))
		blocks.extend(titled_list("Rotina de Cuidados", care.steps, ordered=True))

	blocks.extend(diagram_blocks("Diagramas da Técnica", report.diagrams))
	return blocks


#============================================
def build_visagism_document(
	report: sre.reports.VisagismReport,
	client_image: bytes | None = None,
) -> list[ContentBlock]:
	"""
	Build the visagism consultation document.
	"""
	features = report.key_facial_features
	hair = report.hair_analysis
	blocks: list[ContentBlock] = [
		Heading("Relatório de Visagismo", level=1),
		Paragraph(f"Análise para Rosto {report.face_shape}"),
		*image_row((client_image,), (), columns=2),
		Heading("Análise Facial", level=3),
		ListBlock(
			(
				f"Forma do Rosto: {report.face_shape}",
				f"Testa: {features.forehead}",
				f"Maxilar: {features.jawline}",
			)
		),
		Heading("Análise Capilar", level=3),
		ListBlock(
			(
				f"Tipo de Fio: {hair.hair_type}",
				f"Densidade: {hair.hair_density}",
				f"Condição Atual: {hair.current_condition}",
			)
		),
	]

	if report.style_recommendations:
		blocks.extend(section("Estilos que Valorizam"))
		for recommendation in report.style_recommendations:
			title = recommendation.style_name
			if recommendation.category:
				title = f"{title} ({recommendation.category})"
			blocks.append(Heading(title, level=4))
			blocks.append(Paragraph(recommendation.description))

	if report.styles_to_avoid:
		blocks.extend(section("Estilos a Evitar"))
		for style in report.styles_to_avoid:
			blocks.append(Heading(style.style_name, level=4))
			blocks.append(Paragraph(style.description))

	if report.makeup_tips or report.accessories_tips:
		blocks.extend(section("Dicas Adicionais"))
		blocks.extend(titled_list("Maquiagem", report.makeup_tips))
		blocks.extend(titled_list("Acessórios", report.accessories_tips))

	if report.summary:
		blocks.extend(section("Resumo da Consultoria"))
		blocks.append(Paragraph(report.summary, style="italic"))
	return blocks


#============================================
def build_viability_document(
	report_text: str,
	reference_image: bytes | None = None,
	client_image: bytes | None = None,
) -> list[ContentBlock]:
	"""
	Build a viability document from lightly formatted text.

	Lines starting with ### become headings, lines starting with - become
	bullets (consecutive bullets share one list) and **bold** markers are
	dropped.

	Args:
		report_text: Report text.
		reference_image: Reference photo bytes.
		client_image: Client photo bytes.

	Returns:
		Content blocks.
	"""
	blocks: list[ContentBlock] = [Heading("Relatório de Viabilidade", level=1), SectionBreak()]
	blocks.extend(
		image_row(
			(reference_image, client_image),
			("Corte Desejado (Referência)", "Foto da Cliente"),
			columns=2,
		)
	)

	bullets: list[str] = []
	for raw_line in report_text.split("\n"):
		line = BOLD_MARKER_PATTERN.sub(r"\1", raw_line.strip())
		if line.startswith("-"):
			bullets.append(line[1:].strip())
			continue
		if bullets:
			blocks.append(ListBlock(bullets))
			bullets = []
		if not line:
			continue
		if line.startswith("###"):
			blocks.append(Heading(line.replace("###", "", 1).strip(), level=3))
		else:
			blocks.append(Paragraph(line))
	if bullets:
		blocks.append(ListBlock(bullets))
	return blocks


#============================================
def build_report_document(
	kind: str,
	report: sre.reports.Report,
	images: dict[str, bytes | None],
) -> list[ContentBlock]:
	"""
	Dispatch to the builder for a report kind.

	Args:
		kind: Report kind.
		report: Validated report.
		images: Image bytes keyed by "client", "reference" and "result".

	Returns:
		Content blocks.
	"""
	if kind == "hairstylist":
		return build_hairstylist_document(
			report,
			images.get("client"),
			images.get("reference"),
			images.get("result"),
		)
	if kind == "colorist":
		return build_colorist_document(report, images.get("client"), images.get("result"))
	if kind == "visagism":
		return build_visagism_document(report, images.get("client"))
	raise ValueError(f"unknown report kind: {kind}")


#============================================
def prepare_diagrams(
	document: list[ContentBlock],
	rasterizer: sre.rasterize.Rasterizer | None = None,
	skip_failures: bool = True,
	timeout: float | None = None,
) -> tuple[list[ContentBlock], list[str]]:
	"""
	Rasterize every diagram once, in order, before layout.

	Args:
		document: Content blocks.
		rasterizer: Diagram rasterizer, cairosvg by default.
		skip_failures: Drop failed diagrams instead of raising.
		timeout: Per-diagram timeout in seconds.

	Returns:
		Tuple of (blocks, titles of skipped diagrams).
	"""
	if rasterizer is None:
		rasterizer = sre.rasterize.rasterize_svg
	prepared: list[ContentBlock] = []
	skipped: list[str] = []
	size = (sre.rasterize.DIAGRAM_PIXEL_SIZE, sre.rasterize.DIAGRAM_PIXEL_SIZE)
	for block in document:
		if block.kind != "diagram" or block.raster is not None:
			prepared.append(block)
			continue
		try:
			raster = sre.rasterize.rasterize_with_timeout(
				rasterizer,
				block.vector_markup,
				size,
				timeout,
				title=block.title,
			)
		except sre.rasterize.DiagramRenderError as error:
			if not skip_failures:
				raise
			print(f"Diagram skipped: {block.title}: {error}")
			skipped.append(block.title)
			continue
		prepared.append(block.with_raster(raster))
	return (prepared, skipped)
