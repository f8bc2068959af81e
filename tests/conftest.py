"""
Pytest configuration for local imports and shared fixtures.
"""

# Standard Library
import io
import os
import sys

#============================================


def _ensure_repo_on_path() -> None:
	"""
	Ensure the repository root is on sys.path.
	"""
	repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
	if repo_root not in sys.path:
		sys.path.insert(0, repo_root)


_ensure_repo_on_path()

# PIP3 modules
import PIL.Image
import pytest


#============================================
def make_png(size: tuple[int, int], color: tuple[int, ...], mode: str = "RGB") -> bytes:
	"""
	Encode a solid color image as PNG bytes.

	Args:
		size: Image (width, height).
		color: Fill color.
		mode: Pillow mode.

	Returns:
		PNG bytes.
	"""
	image = PIL.Image.new(mode, size, color)
	buffer = io.BytesIO()
	image.save(buffer, format="PNG")
	return buffer.getvalue()


@pytest.fixture
def png_factory():
	return make_png


#============================================
def hairstylist_payload() -> dict:
	"""
	A hairstylist report as the generation service returns it.
	"""
	return {
		"viabilityAnalysis": {
			"verdict": "Altamente Recomendado",
			"justification": "O formato oval do rosto acompanha bem o corte em camadas.",
			"adaptationRecommendations": "Manter a franja um pouco mais longa.",
		},
		"cuttingPlan": {
			"styleName": "Long Bob",
			"description": "Corte reto na altura dos ombros com leve movimento.",
			"tools": ["Tesoura fio navalha", "Pente de corte"],
			"accessories": ["Presilhas"],
			"preparationSteps": ["Lavar", "Secar com toalha"],
			"steps": ["Dividir em quatro quadrantes", "Cortar a nuca", "Conferir as laterais"],
			"finishingSteps": ["Escovar"],
			"diagrams": [
				{
					"title": "Vista lateral",
					"svg": (
						'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 100 100">'
						'<line x1="10" y1="10" x2="90" y2="90" stroke="black"/></svg>'
					),
				},
			],
			"detailedPrompt": "long bob, shoulder length",
		},
		"referenceVisagism": {
			"faceShape": "Oval",
			"keyFacialFeatures": {"forehead": "Média", "jawline": "Suave", "nose": "Reto"},
			"hairAnalysis": {"hairType": "Liso", "hairDensity": "Média"},
			"styleHarmony": "Harmonia equilibrada.",
		},
	}


@pytest.fixture
def hairstylist_report_payload():
	return hairstylist_payload()
