"""
Shared configuration, constants and data types.
"""

import dataclasses
import math


POINTS_PER_INCH = 72.0
POINTS_PER_MM = 2.835
POINTS_PER_CM = 28.35

DEFAULT_PAGE_FORMAT = "A4"
PAPER_SIZES = {
	"A0": (2383.94, 3370.39),
	"A1": (1683.78, 2383.94),
	"A2": (1190.55, 1683.78),
	"A3": (841.89, 1190.55),
	"A4": (595.28, 841.89),
	"A5": (419.53, 595.28),
	"A6": (297.64, 419.53),
	"Letter": (612.0, 792.0),
	"Legal": (612.0, 1008.0),
	"Tabloid": (792.0, 1224.0),
	"Ledger": (1224.0, 792.0),
}
AMERICAN_PAPER_FORMATS = {"Letter", "Legal", "Tabloid", "Ledger"}
AMERICAN_DEFAULT_MARGIN = "0.25in"
ISO_DEFAULT_MARGIN = "0.5cm"
MARGIN_PRESETS = {
	"none": 0.0,
	"thin": 0.02,
	"standard": 0.05,
	"large": 0.08,
}
# fractions of the usable cell space, 80% of the smaller cell side
QR_SIZE_PRESETS = {
	"small": 0.3,
	"medium": 0.5,
	"large": 0.7,
}
QR_SIZE_AVAILABLE_FRACTION = 0.8

LABEL_BAND_HEIGHT = 25.0
LABEL_GAP = 8.0
LABEL_FONT_SCALE = 0.06
LABEL_MIN_FONT_SIZE = 6.0
CELL_PADDING = 10.0
PLACEHOLDER_ID_FONT_SCALE = 0.08
PLACEHOLDER_ID_MIN_FONT_SIZE = 8.0
PLACEHOLDER_ID_INSET = 5.0

DEFAULT_FONT_REGULAR = "Helvetica"
PAGE_BORDER_COLOR = "#000000"
MARGIN_GUIDE_COLOR = "#CCCCCC"
PLACEHOLDER_FILL_COLOR = "#E0E0E0"
PLACEHOLDER_STROKE_COLOR = "#000000"
LABEL_TEXT_COLOR = "#000000"
PLACEHOLDER_ID_COLOR = "#000000"
CUTLINE_COLOR = "#999999"
CUTLINE_DASH = (3.0, 2.0)
OUTER_FRAME_COLOR = "#FF0000"
LINE_WIDTH = 1.0

PROGRESS_BAR_WIDTH = 20
PDF_INVARIANT = True


@dataclasses.dataclass(frozen=True)
class ExportSettings:
	page_format: str = DEFAULT_PAGE_FORMAT
	margin_mm: float = 10.0
	qr_size_mm: float = 30.0
	items_per_row: int = 3
	include_cutlines: bool = True
	include_labels: bool = True


@dataclasses.dataclass
class QRItem:
	id: str
	name: str
	raster_image: str | bytes | None = None


@dataclasses.dataclass
class PageGeometry:
	page_width: float
	page_height: float
	margin: float
	content_width: float
	content_height: float


@dataclasses.dataclass
class GridLayout:
	columns: int
	rows: int
	cell_width: float
	cell_height: float


@dataclasses.dataclass
class CellPlacement:
	index: int
	row: int
	col: int
	cell_x: float
	cell_y: float
	qr_x: float
	qr_y: float
	qr_size: float


@dataclasses.dataclass
class SheetLayout:
	page: PageGeometry
	grid: GridLayout
	qr_size: float
	label_band: float
	placements: list[CellPlacement] = dataclasses.field(default_factory=list)


@dataclasses.dataclass
class GenerationResult:
	success: bool
	document_buffer: bytes | None = None
	page_count: int | None = None
	item_count: int | None = None
	processing_time_ms: int | None = None
	error: str | None = None
	layout: SheetLayout | None = None


#============================================
def mm_to_points(value: float) -> float:
	"""
	Convert millimeters to points.

	Args:
		value: Millimeters value.

	Returns:
		Points value.
	"""
	return value * POINTS_PER_MM


#============================================
def points_to_mm(value: float) -> float:
	"""
	Convert points to millimeters.
	"""
	return value / POINTS_PER_MM


#============================================
def get_paper_size(page_format: str) -> tuple[float, float]:
	"""
	Look up page dimensions for a paper format name.

	Unknown names fall back to the default format instead of failing.

	Args:
		page_format: Paper format name such as "A4" or "Letter".

	Returns:
		Tuple of (width, height) in points.
	"""
	size = PAPER_SIZES.get(page_format)
	if size is None:
		size = PAPER_SIZES[DEFAULT_PAGE_FORMAT]
	return size


#============================================
def parse_length(value: str | float | int) -> float:
	"""
	Parse a length with an optional unit suffix into points.

	Bare numbers are already points. Supported suffixes are mm, cm, in and pt.

	Args:
		value: Length like "0.5cm", "0.25in", "3mm" or a number.

	Returns:
		Length in points.
	"""
	if isinstance(value, (int, float)):
		return float(value)
	text = value.strip().lower()
	if not text:
		raise ValueError("Empty length value")
	factors = (
		("mm", POINTS_PER_MM),
		("cm", POINTS_PER_CM),
		("in", POINTS_PER_INCH),
		("pt", 1.0),
	)
	for suffix, factor in factors:
		if text.endswith(suffix):
			number = text[: -len(suffix)].strip()
			try:
				return float(number) * factor
			except ValueError as error:
				raise ValueError(f"Invalid length value: {value!r}") from error
	try:
		return float(text)
	except ValueError as error:
		raise ValueError(f"Invalid length value: {value!r}") from error


#============================================
def parse_length_mm(value: str | float | int) -> float:
	"""
	Parse a length where bare numbers mean millimeters.

	Args:
		value: Length like "2cm" or a number of millimeters.

	Returns:
		Length in millimeters.
	"""
	if isinstance(value, (int, float)):
		return float(value)
	text = value.strip()
	try:
		return float(text)
	except ValueError:
		return points_to_mm(parse_length(text))


#============================================
def default_margin_mm(page_format: str) -> float:
	"""
	Default margin for a paper format.

	American formats get a quarter inch, ISO formats half a centimeter.

	Args:
		page_format: Paper format name.

	Returns:
		Margin in millimeters.
	"""
	if page_format in AMERICAN_PAPER_FORMATS:
		return points_to_mm(parse_length(AMERICAN_DEFAULT_MARGIN))
	return points_to_mm(parse_length(ISO_DEFAULT_MARGIN))


#============================================
def resolve_margin_mm(value: str | float | int | None, page_format: str) -> float:
	"""
	Resolve a margin setting into millimeters.

	Args:
		value: Number of millimeters, length string, preset name or "auto".
		page_format: Paper format name, used by presets and "auto".

	Returns:
		Margin in millimeters.
	"""
	if value is None:
		return default_margin_mm(page_format)
	if isinstance(value, str):
		key = value.strip().lower()
		if key == "auto":
			return default_margin_mm(page_format)
		if key in MARGIN_PRESETS:
			width, height = get_paper_size(page_format)
			return points_to_mm(min(width, height) * MARGIN_PRESETS[key])
	return parse_length_mm(value)


#============================================
def resolve_qr_size_mm(
	value: str | float | int,
	page_format: str,
	margin_mm: float,
	item_count: int,
	items_per_row: int,
) -> float:
	"""
	Resolve a QR size setting into millimeters.

	Presets scale with the grid cell the item count produces; anything
	else is a length.

	Args:
		value: Number of millimeters, length string or preset name.
		page_format: Paper format name.
		margin_mm: Page margin in millimeters.
		item_count: Number of items on the sheet.
		items_per_row: Number of columns.

	Returns:
		QR size in millimeters.
	"""
	if isinstance(value, str):
		key = value.strip().lower()
		if key in QR_SIZE_PRESETS:
			width, height = get_paper_size(page_format)
			margin = mm_to_points(margin_mm)
			rows = max(1, math.ceil(item_count / items_per_row))
			cell_width = (width - 2.0 * margin) / items_per_row
			cell_height = (height - 2.0 * margin) / rows
			available = min(cell_width, cell_height) * QR_SIZE_AVAILABLE_FRACTION
			return points_to_mm(available * QR_SIZE_PRESETS[key])
	return parse_length_mm(value)
