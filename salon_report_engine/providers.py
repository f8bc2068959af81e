"""
Interfaces to the generation service and the flows built on them.
"""

# Standard Library
import dataclasses
import typing

# local repo modules
import salon_report_engine as sre
import salon_report_engine.reports
import salon_report_engine.watermark


GenerationError = sre.reports.GenerationError
Report = sre.reports.Report
WatermarkSpec = sre.watermark.WatermarkSpec


class ReportGenerator(typing.Protocol):
	"""
	Generation service, one call per user action and no retries.
	"""

	async def generate_report(self, kind: str, images: list[bytes], text: str) -> Report: ...

	async def edit_image(self, source_image: bytes, prompt: str) -> bytes: ...


class ChatBackend(typing.Protocol):
	async def reply(self, history: list["ChatMessage"], text: str) -> str: ...


@dataclasses.dataclass(frozen=True)
class ChatMessage:
	role: str
	text: str


class ReportSession:
	"""
	Conversation handle owned by the caller.

	Each session keeps its own history; nothing is shared between sessions.
	"""

	def __init__(self, backend: ChatBackend) -> None:
		self.backend = backend
		self.history: list[ChatMessage] = []

	async def send(self, text: str) -> str:
		"""
		Send a user message and record the model reply.

		Args:
			text: User message.

		Returns:
			Model reply text.
		"""
		if not text.strip():
			raise ValueError("message text is empty")
		prior = list(self.history)
		reply = await self.backend.reply(prior, text)
		self.history.append(ChatMessage(role="user", text=text))
		self.history.append(ChatMessage(role="model", text=reply))
		return reply


#============================================
def start_session(backend: ChatBackend) -> ReportSession:
	return ReportSession(backend)


#============================================
async def generate_report(
	generator: ReportGenerator,
	kind: str,
	images: list[bytes],
	text: str,
) -> Report:
	"""
	Request a report, wrapping unexpected failures as GenerationError.

	Args:
		generator: Generation service.
		kind: Report kind.
		images: Input photos.
		text: Extra instructions.

	Returns:
		Validated report model.
	"""
	if kind not in sre.reports.REPORT_KINDS:
		raise ValueError(f"unknown report kind: {kind}")
	try:
		report = await generator.generate_report(kind, images, text)
	except GenerationError:
		raise
	except Exception as error:
		raise GenerationError(str(error)) from error
	if isinstance(report, (str, dict)):
		report = sre.reports.parse_report(kind, report)
	return report


#============================================
async def generate_watermarked_result(
	generator: ReportGenerator,
	source_image: bytes,
	prompt: str,
	spec: WatermarkSpec | None = None,
) -> bytes:
	"""
	Generate an edited image and watermark it.

	Watermark failures fall back to the unwatermarked image; generation
	failures propagate.

	Args:
		generator: Generation service.
		source_image: Source photo bytes.
		prompt: Edit instructions.
		spec: Watermark spec.

	Returns:
		Image bytes.
	"""
	try:
		edited = await generator.edit_image(source_image, prompt)
	except GenerationError:
		raise
	except Exception as error:
		raise GenerationError(str(error)) from error
	if not edited:
		raise GenerationError("Image edit returned no data.")
	return sre.watermark.watermark_or_original(edited, spec)
