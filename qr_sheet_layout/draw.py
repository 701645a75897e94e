"""
Page composition: frame, QR artwork, placeholders and labels.
"""

# Standard Library
import base64
import binascii
import collections.abc
import contextlib
import dataclasses
import io
import re

# PIP3 modules
import PIL.Image
import reportlab.lib.utils
import reportlab.pdfbase.pdfmetrics
import reportlab.pdfgen.canvas

# local repo modules
import qr_sheet_layout as qsl
import qr_sheet_layout.config


QRItem = qsl.config.QRItem
PageGeometry = qsl.config.PageGeometry
CellPlacement = qsl.config.CellPlacement
SheetLayout = qsl.config.SheetLayout

DEFAULT_FONT_REGULAR = qsl.config.DEFAULT_FONT_REGULAR
LABEL_GAP = qsl.config.LABEL_GAP
LABEL_FONT_SCALE = qsl.config.LABEL_FONT_SCALE
LABEL_MIN_FONT_SIZE = qsl.config.LABEL_MIN_FONT_SIZE
LINE_WIDTH = qsl.config.LINE_WIDTH
PLACEHOLDER_ID_FONT_SCALE = qsl.config.PLACEHOLDER_ID_FONT_SCALE
PLACEHOLDER_ID_MIN_FONT_SIZE = qsl.config.PLACEHOLDER_ID_MIN_FONT_SIZE
PLACEHOLDER_ID_INSET = qsl.config.PLACEHOLDER_ID_INSET

DATA_URL_PATTERN = re.compile(r"^data:[^,]*,", re.IGNORECASE)


@dataclasses.dataclass
class DrawContext:
	"""
	A canvas plus the page height needed to flip top-down coordinates.

	Style changes go through stroke_style() or fill_style(), which restore
	the previous graphics state on exit.
	"""
	canvas: reportlab.pdfgen.canvas.Canvas
	page_width: float
	page_height: float

	def flip_y(self, y: float) -> float:
		return self.page_height - y

	def rect(self, x: float, y: float, width: float, height: float, stroke: int = 1, fill: int = 0) -> None:
		self.canvas.rect(x, self.page_height - y - height, width, height, stroke=stroke, fill=fill)

	def line(self, x0: float, y0: float, x1: float, y1: float) -> None:
		self.canvas.line(x0, self.flip_y(y0), x1, self.flip_y(y1))


#============================================
def parse_hex_color(value: str) -> tuple[float, float, float]:
	"""
	Parse a hex color string into RGB floats.

	Args:
		value: Color string like "#AABBCC".

	Returns:
		Tuple of (r, g, b) in 0.0-1.0 range.

	Raises:
		ValueError: If the value is not a "#RRGGBB" string.
	"""
	if not value or not value.startswith("#") or len(value) != 7:
		raise ValueError(f"Invalid hex color: {value!r}")
	red = int(value[1:3], 16) / 255.0
	green = int(value[3:5], 16) / 255.0
	blue = int(value[5:7], 16) / 255.0
	return (red, green, blue)


#============================================
@contextlib.contextmanager
def stroke_style(
	ctx: DrawContext,
	color: str,
	width: float = LINE_WIDTH,
	dash: tuple[float, ...] | None = None,
) -> collections.abc.Iterator[DrawContext]:
	"""
	Scope a stroke color, width and dash pattern.

	Args:
		ctx: Draw context.
		color: Hex stroke color.
		width: Line width in points.
		dash: Optional dash pattern, solid when None.

	Yields:
		The same draw context.
	"""
	pdf = ctx.canvas
	pdf.saveState()
	try:
		red, green, blue = parse_hex_color(color)
		pdf.setStrokeColorRGB(red, green, blue)
		pdf.setLineWidth(width)
		if dash:
			pdf.setDash(list(dash), 0)
		else:
			pdf.setDash([], 0)
		yield ctx
	finally:
		pdf.restoreState()


#============================================
@contextlib.contextmanager
def fill_style(ctx: DrawContext, color: str) -> collections.abc.Iterator[DrawContext]:
	"""
	Scope a fill color.
	"""
	pdf = ctx.canvas
	pdf.saveState()
	try:
		red, green, blue = parse_hex_color(color)
		pdf.setFillColorRGB(red, green, blue)
		yield ctx
	finally:
		pdf.restoreState()


#============================================
def create_draw_context(buffer: io.BytesIO, page: PageGeometry) -> DrawContext:
	"""
	Create a fresh single-page canvas writing into a buffer.

	Args:
		buffer: Output buffer.
		page: Page geometry.

	Returns:
		DrawContext.
	"""
	pdf = reportlab.pdfgen.canvas.Canvas(
		buffer,
		pagesize=(page.page_width, page.page_height),
		invariant=qsl.config.PDF_INVARIANT,
	)
	return DrawContext(canvas=pdf, page_width=page.page_width, page_height=page.page_height)


#============================================
def strip_data_url(payload: str) -> str:
	"""
	Remove a data URL prefix such as "data:image/png;base64," if present.
	"""
	return DATA_URL_PATTERN.sub("", payload.strip(), count=1)


#============================================
def flatten_transparency(image: PIL.Image.Image) -> PIL.Image.Image:
	"""
	Composite transparent images onto white and normalize the mode.

	Args:
		image: Loaded PIL image.

	Returns:
		RGB or L image.
	"""
	if image.mode in ("RGBA", "LA") or "transparency" in image.info:
		base = PIL.Image.new("RGB", image.size, (255, 255, 255))
		image_rgba = image.convert("RGBA")
		base.paste(image_rgba, mask=image_rgba.split()[-1])
		return base
	if image.mode not in ("RGB", "L"):
		return image.convert("RGB")
	return image


#============================================
def decode_raster_image(raster_image: str | bytes | None) -> reportlab.lib.utils.ImageReader | None:
	"""
	Decode an item's raster payload into an ImageReader.

	Strings are data URLs or bare base64. Bytes are the encoded image file,
	or a data URL held as bytes.

	Args:
		raster_image: Encoded image payload or None.

	Returns:
		ImageReader, or None when the payload is absent or undecodable.
	"""
	if raster_image is None:
		return None
	if not isinstance(raster_image, str) and bytes(raster_image[:5]).lower() == b"data:":
		try:
			raster_image = bytes(raster_image).decode("ascii")
		except UnicodeDecodeError:
			return None
	if isinstance(raster_image, str):
		payload = "".join(strip_data_url(raster_image).split())
		if not payload:
			return None
		try:
			data = base64.b64decode(payload, validate=True)
		except (binascii.Error, ValueError):
			return None
	else:
		data = bytes(raster_image)
	if not data:
		return None
	try:
		image = PIL.Image.open(io.BytesIO(data))
		image.load()
	except (PIL.UnidentifiedImageError, PIL.Image.DecompressionBombError, OSError, ValueError):
		return None
	return reportlab.lib.utils.ImageReader(flatten_transparency(image))


#============================================
def draw_page_frame(ctx: DrawContext, page: PageGeometry) -> None:
	"""
	Draw the page border and, with a margin, the margin guide.

	Args:
		ctx: Draw context.
		page: Page geometry.
	"""
	with stroke_style(ctx, qsl.config.PAGE_BORDER_COLOR):
		ctx.rect(0.0, 0.0, page.page_width, page.page_height)
	if page.margin > 0:
		with stroke_style(ctx, qsl.config.MARGIN_GUIDE_COLOR):
			ctx.rect(page.margin, page.margin, page.content_width, page.content_height)


#============================================
def draw_artwork(
	ctx: DrawContext,
	placement: CellPlacement,
	image_reader: reportlab.lib.utils.ImageReader,
) -> None:
	"""
	Draw a decoded QR image at its placement.

	Args:
		ctx: Draw context.
		placement: Cell placement.
		image_reader: Decoded image.
	"""
	size = placement.qr_size
	ctx.canvas.drawImage(
		image_reader,
		placement.qr_x,
		ctx.page_height - placement.qr_y - size,
		width=size,
		height=size,
		mask=None,
		preserveAspectRatio=False,
		anchor="sw",
	)


#============================================
def draw_placeholder(ctx: DrawContext, placement: CellPlacement, item_id: str = "") -> None:
	"""
	Draw a filled, bordered box where the artwork would go, with the item
	id in its top-left corner.
	"""
	size = placement.qr_size
	with fill_style(ctx, qsl.config.PLACEHOLDER_FILL_COLOR):
		with stroke_style(ctx, qsl.config.PLACEHOLDER_STROKE_COLOR):
			ctx.rect(placement.qr_x, placement.qr_y, size, size, stroke=1, fill=1)
	if not item_id:
		return
	font_size = max(PLACEHOLDER_ID_MIN_FONT_SIZE, size * PLACEHOLDER_ID_FONT_SCALE)
	ascent = reportlab.pdfbase.pdfmetrics.getAscent(DEFAULT_FONT_REGULAR) * font_size / 1000.0
	text_top = placement.qr_y + PLACEHOLDER_ID_INSET
	with fill_style(ctx, qsl.config.PLACEHOLDER_ID_COLOR):
		ctx.canvas.setFont(DEFAULT_FONT_REGULAR, font_size)
		ctx.canvas.drawString(placement.qr_x + PLACEHOLDER_ID_INSET, ctx.flip_y(text_top + ascent), item_id)


#============================================
def compute_label_font_size(qr_size: float) -> float:
	"""
	Scale the label font with the artwork, bounded below for legibility.
	"""
	return max(LABEL_MIN_FONT_SIZE, qr_size * LABEL_FONT_SCALE)


#============================================
def draw_label(ctx: DrawContext, placement: CellPlacement, name: str) -> None:
	"""
	Draw an item name centered under its artwork.

	The label is a single line; long names may extend past the cell.

	Args:
		ctx: Draw context.
		placement: Cell placement.
		name: Label text.
	"""
	if not name:
		return
	font_size = compute_label_font_size(placement.qr_size)
	text_width = reportlab.pdfbase.pdfmetrics.stringWidth(name, DEFAULT_FONT_REGULAR, font_size)
	ascent = reportlab.pdfbase.pdfmetrics.getAscent(DEFAULT_FONT_REGULAR) * font_size / 1000.0
	text_x = placement.qr_x + (placement.qr_size - text_width) / 2.0
	text_top = placement.qr_y + placement.qr_size + LABEL_GAP
	with fill_style(ctx, qsl.config.LABEL_TEXT_COLOR):
		ctx.canvas.setFont(DEFAULT_FONT_REGULAR, font_size)
		ctx.canvas.drawString(text_x, ctx.flip_y(text_top + ascent), name)


#============================================
def draw_item(
	ctx: DrawContext,
	placement: CellPlacement,
	item: QRItem,
	include_labels: bool,
) -> bool:
	"""
	Draw one item's artwork or placeholder and its optional label.

	Args:
		ctx: Draw context.
		placement: Cell placement.
		item: QR item.
		include_labels: Whether to draw the name.

	Returns:
		True if the artwork decoded, False if a placeholder was drawn.
	"""
	image_reader = decode_raster_image(item.raster_image)
	if image_reader is not None:
		draw_artwork(ctx, placement, image_reader)
	else:
		draw_placeholder(ctx, placement, item.id)
	if include_labels:
		draw_label(ctx, placement, item.name)
	return image_reader is not None


#============================================
def compose_items(
	ctx: DrawContext,
	layout: SheetLayout,
	items: list[QRItem],
	include_labels: bool,
	on_item: collections.abc.Callable[[int], None] | None = None,
) -> int:
	"""
	Place every item in its grid cell, in input order.

	Args:
		ctx: Draw context.
		layout: Sheet layout.
		items: QR items, same length as layout.placements.
		include_labels: Whether to draw names.
		on_item: Optional callback invoked with each finished item index.

	Returns:
		Number of items drawn as placeholders.
	"""
	placeholders = 0
	for placement, item in zip(layout.placements, items):
		if not draw_item(ctx, placement, item, include_labels):
			placeholders += 1
		if on_item is not None:
			on_item(placement.index)
	return placeholders
