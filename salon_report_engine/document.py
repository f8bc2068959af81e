"""
Typed content blocks that make up one report document.
"""

# Standard Library
import dataclasses
import typing

# PIP3 modules
import PIL.Image

# local repo modules
import salon_report_engine as sre
import salon_report_engine.config


BADGE_COLORS = sre.config.BADGE_COLORS
COLOR_GREY = sre.config.COLOR_GREY

PARAGRAPH_STYLES = ("normal", "italic", "bold")
IMAGE_ROW_COLUMNS = (2, 3)
BULLET_PREFIX = "• "


@dataclasses.dataclass(frozen=True)
class Heading:
	text: str
	level: int = 1
	kind: str = dataclasses.field(default="heading", init=False)

	def __post_init__(self) -> None:
		if self.level < 1:
			raise ValueError(f"heading level must be >= 1, got {self.level}")


@dataclasses.dataclass(frozen=True)
class Paragraph:
	text: str
	style: str = "normal"
	kind: str = dataclasses.field(default="paragraph", init=False)

	def __post_init__(self) -> None:
		if self.style not in PARAGRAPH_STYLES:
			raise ValueError(f"unknown paragraph style: {self.style}")


@dataclasses.dataclass(frozen=True)
class ListBlock:
	items: tuple[str, ...]
	ordered: bool = False
	kind: str = dataclasses.field(default="list", init=False)

	def __post_init__(self) -> None:
		# accept any sequence, store a tuple so the block stays hashable
		object.__setattr__(self, "items", tuple(self.items))


@dataclasses.dataclass(frozen=True)
class ImageRow:
	images: tuple[bytes | None, ...]
	labels: tuple[str, ...] = ()
	columns: int = 2
	kind: str = dataclasses.field(default="image_row", init=False)

	def __post_init__(self) -> None:
		object.__setattr__(self, "images", tuple(self.images))
		object.__setattr__(self, "labels", tuple(self.labels))
		if self.columns not in IMAGE_ROW_COLUMNS:
			raise ValueError(f"image rows have 2 or 3 columns, got {self.columns}")
		if len(self.images) > self.columns:
			raise ValueError(
				f"{len(self.images)} images do not fit in {self.columns} columns"
			)
		if self.labels and len(self.labels) != len(self.images):
			raise ValueError("labels must match images one to one")

	@property
	def has_labels(self) -> bool:
		return any(label.strip() for label in self.labels)


@dataclasses.dataclass(frozen=True)
class Diagram:
	title: str
	vector_markup: str
	raster: PIL.Image.Image | None = dataclasses.field(default=None, compare=False)
	kind: str = dataclasses.field(default="diagram", init=False)

	def with_raster(self, raster: PIL.Image.Image) -> "Diagram":
		return dataclasses.replace(self, raster=raster)


@dataclasses.dataclass(frozen=True)
class Badge:
	text: str
	color_key: str = "grey"
	kind: str = dataclasses.field(default="badge", init=False)

	@property
	def color(self) -> tuple[int, int, int]:
		return badge_color(self.color_key)


@dataclasses.dataclass(frozen=True)
class SectionBreak:
	kind: str = dataclasses.field(default="section_break", init=False)


ContentBlock = typing.Union[Heading, Paragraph, ListBlock, ImageRow, Diagram, Badge, SectionBreak]
Document = list[ContentBlock]


#============================================
def list_item_prefix(index: int, ordered: bool) -> str:
	"""
	Prefix for a list item.

	Args:
		index: Zero-based item index.
		ordered: Numbered list flag.

	Returns:
		"{n}. " for ordered lists, a bullet otherwise.
	"""
	if ordered:
		return f"{index + 1}. "
	return BULLET_PREFIX


#============================================
def badge_color(color_key: str) -> tuple[int, int, int]:
	"""
	Resolve a badge color key, unknown keys fall back to grey.
	"""
	return BADGE_COLORS.get(color_key.strip().lower(), COLOR_GREY)


#============================================
def count_blocks(document: Document) -> dict[str, int]:
	"""
	Count blocks per kind.

	Args:
		document: Content blocks.

	Returns:
		Dictionary of kind to count.
	"""
	counts: dict[str, int] = {}
	for block in document:
		counts[block.kind] = counts.get(block.kind, 0) + 1
	return counts
