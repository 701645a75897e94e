"""
Cut guides: dashed lines between cells and a solid frame at the margin.
"""

# Standard Library
import dataclasses

# local repo modules
import qr_sheet_layout as qsl
import qr_sheet_layout.config
import qr_sheet_layout.draw


SheetLayout = qsl.config.SheetLayout
DrawContext = qsl.draw.DrawContext

Segment = tuple[float, float, float, float]


@dataclasses.dataclass
class CutlineSegments:
	internal: list[Segment]
	outer: list[Segment]


#============================================
def compute_cutline_segments(layout: SheetLayout) -> CutlineSegments:
	"""
	Compute cut guide segments in top-down page coordinates.

	Internal guides sit on the column and row boundaries between cells.
	The outer frame traces the margin boundary and is omitted without a
	margin, where it would coincide with the page edge.

	Args:
		layout: Sheet layout.

	Returns:
		CutlineSegments with (x0, y0, x1, y1) tuples.
	"""
	page = layout.page
	grid = layout.grid
	left = page.margin
	top = page.margin
	right = page.page_width - page.margin
	bottom = page.page_height - page.margin

	internal: list[Segment] = []
	for col in range(1, grid.columns):
		x = page.margin + col * grid.cell_width
		internal.append((x, top, x, bottom))
	for row in range(1, grid.rows):
		y = page.margin + row * grid.cell_height
		internal.append((left, y, right, y))

	outer: list[Segment] = []
	if page.margin > 0:
		outer = [
			(left, top, right, top),
			(left, bottom, right, bottom),
			(left, top, left, bottom),
			(right, top, right, bottom),
		]
	return CutlineSegments(internal=internal, outer=outer)


#============================================
def draw_cutlines(ctx: DrawContext, layout: SheetLayout) -> CutlineSegments:
	"""
	Draw the internal dashed guides, then the solid outer frame.

	Args:
		ctx: Draw context.
		layout: Sheet layout.

	Returns:
		The segments that were drawn.
	"""
	segments = compute_cutline_segments(layout)
	with qsl.draw.stroke_style(ctx, qsl.config.CUTLINE_COLOR, dash=qsl.config.CUTLINE_DASH):
		for x0, y0, x1, y1 in segments.internal:
			ctx.line(x0, y0, x1, y1)
	if segments.outer:
		with qsl.draw.stroke_style(ctx, qsl.config.OUTER_FRAME_COLOR):
			for x0, y0, x1, y1 in segments.outer:
				ctx.line(x0, y0, x1, y1)
	return segments
