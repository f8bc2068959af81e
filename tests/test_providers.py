import asyncio
import io
import json

import PIL.Image
import pytest

import conftest
import salon_report_engine as sre
import salon_report_engine.providers
import salon_report_engine.reports
import salon_report_engine.watermark


GenerationError = sre.reports.GenerationError


class FakeGenerator:
	"""
	Generation service returning canned data.
	"""

	def __init__(self, report=None, image: bytes = b"", error: Exception | None = None) -> None:
		self.report = report
		self.image = image
		self.error = error
		self.calls: list[tuple] = []

	async def generate_report(self, kind: str, images: list[bytes], text: str):
		self.calls.append(("report", kind, len(images), text))
		if self.error is not None:
			raise self.error
		return self.report

	async def edit_image(self, source_image: bytes, prompt: str) -> bytes:
		self.calls.append(("edit", prompt))
		if self.error is not None:
			raise self.error
		return self.image


class EchoBackend:
	def __init__(self) -> None:
		self.seen: list[int] = []

	async def reply(self, history: list, text: str) -> str:
		self.seen.append(len(history))
		return f"eco: {text}"


#============================================
def test_generate_report_parses_text() -> None:
	text = "```json\n" + json.dumps(conftest.hairstylist_payload()) + "\n```"
	generator = FakeGenerator(report=text)
	report = asyncio.run(
		sre.providers.generate_report(generator, "hairstylist", [b"a", b"b"], "corte")
	)
	assert report.cutting_plan.style_name == "Long Bob"
	assert generator.calls == [("report", "hairstylist", 2, "corte")]


#============================================
def test_generate_report_passes_models_through() -> None:
	model = sre.reports.parse_report("hairstylist", conftest.hairstylist_payload())
	generator = FakeGenerator(report=model)
	report = asyncio.run(sre.providers.generate_report(generator, "hairstylist", [], ""))
	assert report is model


#============================================
def test_generate_report_wraps_failures() -> None:
	generator = FakeGenerator(error=RuntimeError("quota exceeded"))
	with pytest.raises(GenerationError, match="quota exceeded") as excinfo:
		asyncio.run(sre.providers.generate_report(generator, "colorist", [], ""))
	assert isinstance(excinfo.value.__cause__, RuntimeError)

	original = GenerationError("No JSON text returned from model.")
	generator = FakeGenerator(error=original)
	with pytest.raises(GenerationError) as excinfo:
		asyncio.run(sre.providers.generate_report(generator, "colorist", [], ""))
	assert excinfo.value is original

	with pytest.raises(GenerationError):
		asyncio.run(sre.providers.generate_report(FakeGenerator(report=""), "visagism", [], ""))
	with pytest.raises(ValueError):
		asyncio.run(sre.providers.generate_report(FakeGenerator(), "barber", [], ""))


#============================================
def test_watermarked_result() -> None:
	edited = conftest.make_png((200, 100), (0, 0, 0))
	asset = conftest.make_png((10, 10), (255, 255, 255, 255), mode="RGBA")
	spec = sre.watermark.WatermarkSpec(asset=asset)
	generator = FakeGenerator(image=edited)
	data = asyncio.run(sre.providers.generate_watermarked_result(generator, b"src", "franja", spec))
	image = PIL.Image.open(io.BytesIO(data))
	assert image.size == (200, 100)
	assert data != edited
	assert generator.calls == [("edit", "franja")]


#============================================
def test_watermarked_result_falls_back() -> None:
	edited = conftest.make_png((20, 20), (0, 0, 0))
	spec = sre.watermark.WatermarkSpec(asset=b"not an image")
	data = asyncio.run(
		sre.providers.generate_watermarked_result(FakeGenerator(image=edited), b"src", "x", spec)
	)
	assert data == edited


#============================================
def test_watermarked_result_errors() -> None:
	with pytest.raises(GenerationError, match="no data"):
		asyncio.run(sre.providers.generate_watermarked_result(FakeGenerator(image=b""), b"s", "x"))
	with pytest.raises(GenerationError, match="timeout"):
		asyncio.run(
			sre.providers.generate_watermarked_result(
				FakeGenerator(error=OSError("timeout")), b"s", "x"
			)
		)


#============================================
def test_sessions_keep_separate_history() -> None:
	backend = EchoBackend()
	first = sre.providers.start_session(backend)
	second = sre.providers.start_session(backend)
	assert asyncio.run(first.send("oi")) == "eco: oi"
	asyncio.run(first.send("tudo bem?"))
	asyncio.run(second.send("olá"))
	assert backend.seen == [0, 2, 0]
	assert [message.role for message in first.history] == ["user", "model", "user", "model"]
	assert len(second.history) == 2
	with pytest.raises(ValueError):
		asyncio.run(first.send("  "))


class UpstreamHTTPError(Exception):
	"""
	Stand-in for an HTTP client error that derives from Exception only.
	"""


#============================================
def test_any_upstream_exception_becomes_generation_error() -> None:
	generator = FakeGenerator(error=UpstreamHTTPError("503 upstream unavailable"))
	with pytest.raises(GenerationError, match="503 upstream unavailable") as excinfo:
		asyncio.run(sre.providers.generate_report(generator, "hairstylist", [], ""))
	assert isinstance(excinfo.value.__cause__, UpstreamHTTPError)

	with pytest.raises(GenerationError, match="503 upstream unavailable") as excinfo:
		asyncio.run(sre.providers.generate_watermarked_result(generator, b"s", "x"))
	assert isinstance(excinfo.value.__cause__, UpstreamHTTPError)
