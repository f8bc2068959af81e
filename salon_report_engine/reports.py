"""
Report schemas returned by the generation service.

Payloads are validated once here; the rest of the code works with the
frozen models.
"""

# Standard Library
import json
import re
import typing

# PIP3 modules
import pydantic
import pydantic.alias_generators


REPORT_KINDS = ("hairstylist", "colorist", "visagism")
FENCE_PATTERN = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


class GenerationError(Exception):
	"""
	The generation service failed or returned unparsable data.
	"""


class ReportModel(pydantic.BaseModel):
	model_config = pydantic.ConfigDict(
		frozen=True,
		extra="ignore",
		populate_by_name=True,
		alias_generator=pydantic.alias_generators.to_camel,
	)


class DiagramSpec(ReportModel):
	title: str
	svg: str


class FacialFeatures(ReportModel):
	forehead: str
	jawline: str
	nose: str
	eyes: str = ""


class HairAnalysis(ReportModel):
	hair_type: str
	hair_density: str
	current_condition: str = ""


#============================================
# hairstylist report


class ViabilityAnalysis(ReportModel):
	verdict: str
	justification: str
	adaptation_recommendations: str = ""


class ReferenceVisagismAnalysis(ReportModel):
	face_shape: str
	key_facial_features: FacialFeatures
	hair_analysis: HairAnalysis
	style_harmony: str = ""


class ThreeDViews(ReportModel):
	front_prompt: str = ""
	side_prompt: str = ""
	back_prompt: str = ""


class CuttingPlan(ReportModel):
	style_name: str
	description: str
	tools: tuple[str, ...] = ()
	accessories: tuple[str, ...] = ()
	preparation_steps: tuple[str, ...] = ()
	steps: tuple[str, ...] = ()
	finishing_steps: tuple[str, ...] = ()
	diagrams: tuple[DiagramSpec, ...] = ()
	detailed_prompt: str = ""
	three_d_views: ThreeDViews | None = None


class HairstylistReport(ReportModel):
	viability_analysis: ViabilityAnalysis
	cutting_plan: CuttingPlan
	reference_visagism: ReferenceVisagismAnalysis | None = None


#============================================
# colorist report


class ColorimetryAnalysis(ReportModel):
	skin_tone: str
	contrast: str
	recommendation: str


class MechasTechnique(ReportModel):
	name: str
	description: str


class ApplicationSteps(ReportModel):
	preparation: tuple[str, ...] = ()
	mechas: tuple[str, ...] = ()
	base_color: tuple[str, ...] = ()
	toning: tuple[str, ...] = ()
	treatment: tuple[str, ...] = ()


class PostChemicalCare(ReportModel):
	recommendation: str
	products: tuple[str, ...] = ()
	steps: tuple[str, ...] = ()


class ColoristReport(ReportModel):
	visagism_and_colorimetry_analysis: ColorimetryAnalysis
	initial_diagnosis: str
	products: tuple[str, ...] = ()
	mechas_technique: MechasTechnique
	application_steps: ApplicationSteps
	diagrams: tuple[DiagramSpec, ...] = ()
	try_on_image_prompt: str = ""
	post_chemical_care: PostChemicalCare | None = None


#============================================
# visagism report


class StyleRecommendation(ReportModel):
	style_name: str
	description: str
	category: str = ""


class StyleToAvoid(ReportModel):
	style_name: str
	description: str


class VisagismReport(ReportModel):
	face_shape: str
	key_facial_features: FacialFeatures
	hair_analysis: HairAnalysis
	style_recommendations: tuple[StyleRecommendation, ...] = ()
	styles_to_avoid: tuple[StyleToAvoid, ...] = ()
	makeup_tips: tuple[str, ...] = ()
	accessories_tips: tuple[str, ...] = ()
	summary: str = ""


Report = typing.Union[HairstylistReport, ColoristReport, VisagismReport]

REPORT_MODELS: dict[str, type[ReportModel]] = {
	"hairstylist": HairstylistReport,
	"colorist": ColoristReport,
	"visagism": VisagismReport,
}


#============================================
def extract_json_text(text: str | None) -> str:
	"""
	Strip whitespace and an optional ```json fence from model output.

	Args:
		text: Raw model text.

	Returns:
		JSON text.
	"""
	if text is None or not text.strip():
		raise GenerationError("No JSON text returned from model.")
	trimmed = text.strip()
	match = FENCE_PATTERN.match(trimmed)
	if match:
		trimmed = match.group(1).strip()
	if not trimmed:
		raise GenerationError("No JSON text returned from model.")
	return trimmed


#============================================
def parse_report(kind: str, payload: str | dict) -> Report:
	"""
	Validate a report payload into its frozen model.

	Args:
		kind: One of REPORT_KINDS.
		payload: JSON text (optionally fenced) or a decoded dict.

	Returns:
		Report model.
	"""
	model = REPORT_MODELS.get(kind)
	if model is None:
		raise ValueError(f"unknown report kind: {kind}")
	if isinstance(payload, str):
		try:
			payload = json.loads(extract_json_text(payload))
		except json.JSONDecodeError as error:
			raise GenerationError(f"Invalid JSON in {kind} report: {error}") from error
	if not isinstance(payload, dict):
		raise GenerationError(f"{kind} report must be a JSON object")
	try:
		return model.model_validate(payload)
	except pydantic.ValidationError as error:
		raise GenerationError(f"Invalid {kind} report: {error}") from error
