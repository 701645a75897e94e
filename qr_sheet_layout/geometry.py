"""
Page and grid geometry for QR code sheets.

All positions use top-down page coordinates: the origin is the top-left
corner of the page and y grows downward. Drawing code flips them into
ReportLab's bottom-up space.
"""

# Standard Library
import math

# local repo modules
import qr_sheet_layout as qsl
import qr_sheet_layout.config


ExportSettings = qsl.config.ExportSettings
PageGeometry = qsl.config.PageGeometry
GridLayout = qsl.config.GridLayout
CellPlacement = qsl.config.CellPlacement
SheetLayout = qsl.config.SheetLayout

LABEL_BAND_HEIGHT = qsl.config.LABEL_BAND_HEIGHT
CELL_PADDING = qsl.config.CELL_PADDING


#============================================
def resolve_page(settings: ExportSettings) -> PageGeometry:
	"""
	Resolve page dimensions, margin and content area.

	The margin is not clamped. A margin too large for the page yields a
	non-positive content area which is passed through unchanged.

	Args:
		settings: Export settings.

	Returns:
		PageGeometry in points.
	"""
	page_width, page_height = qsl.config.get_paper_size(settings.page_format)
	margin = qsl.config.mm_to_points(settings.margin_mm)
	return PageGeometry(
		page_width=page_width,
		page_height=page_height,
		margin=margin,
		content_width=page_width - 2.0 * margin,
		content_height=page_height - 2.0 * margin,
	)


#============================================
def compute_grid(item_count: int, items_per_row: int, page: PageGeometry) -> GridLayout:
	"""
	Compute the grid for a single page.

	Rows are derived from the item count and always share the full content
	height, so more items means smaller cells rather than more pages.

	Args:
		item_count: Number of items on the sheet.
		items_per_row: Number of columns.
		page: Page geometry.

	Returns:
		GridLayout.
	"""
	columns = items_per_row
	rows = math.ceil(item_count / columns) if item_count > 0 else 0
	cell_width = page.content_width / columns
	cell_height = page.content_height / rows if rows > 0 else 0.0
	return GridLayout(
		columns=columns,
		rows=rows,
		cell_width=cell_width,
		cell_height=cell_height,
	)


#============================================
def compute_cell_origin(
	index: int,
	grid: GridLayout,
	page: PageGeometry,
) -> tuple[int, int, float, float]:
	"""
	Compute the row-major cell for an item index.

	Args:
		index: Item index.
		grid: Grid layout.
		page: Page geometry.

	Returns:
		Tuple of (row, col, cell_x, cell_y).
	"""
	row = index // grid.columns
	col = index % grid.columns
	cell_x = page.margin + col * grid.cell_width
	cell_y = page.margin + row * grid.cell_height
	return (row, col, cell_x, cell_y)


#============================================
def clamp_qr_y(
	qr_y: float,
	cell_y: float,
	cell_height: float,
	qr_size: float,
	label_band: float,
) -> float:
	"""
	Clamp the artwork y origin so it stays inside its cell.

	The padded range keeps the artwork off the cell edge and clear of the
	label band. When the cell is too small for that range, the origin is
	still held within the cell; the artwork may then overflow below it.

	Args:
		qr_y: Centered artwork y origin.
		cell_y: Cell top.
		cell_height: Cell height.
		qr_size: Artwork size.
		label_band: Height reserved for the label.

	Returns:
		Clamped y origin.
	"""
	low = cell_y + CELL_PADDING
	high = cell_y + cell_height - qr_size - label_band - CELL_PADDING
	clamped = max(low, min(qr_y, high))
	upper_bound = cell_y + max(0.0, cell_height - qr_size)
	return max(cell_y, min(clamped, upper_bound))


#============================================
def compute_placement(
	index: int,
	grid: GridLayout,
	page: PageGeometry,
	qr_size: float,
	label_band: float,
) -> CellPlacement:
	"""
	Compute cell and artwork positions for one item.

	Args:
		index: Item index.
		grid: Grid layout.
		page: Page geometry.
		qr_size: Artwork size in points.
		label_band: Label band height in points.

	Returns:
		CellPlacement.
	"""
	row, col, cell_x, cell_y = compute_cell_origin(index, grid, page)
	qr_x = cell_x + (grid.cell_width - qr_size) / 2.0
	qr_y = cell_y + (grid.cell_height - qr_size - label_band) / 2.0
	qr_y = clamp_qr_y(qr_y, cell_y, grid.cell_height, qr_size, label_band)
	return CellPlacement(
		index=index,
		row=row,
		col=col,
		cell_x=cell_x,
		cell_y=cell_y,
		qr_x=qr_x,
		qr_y=qr_y,
		qr_size=qr_size,
	)


#============================================
def compute_layout(item_count: int, settings: ExportSettings) -> SheetLayout:
	"""
	Resolve the full sheet layout for a run.

	The label band is reserved whether or not labels are drawn, so turning
	labels off leaves the artwork where it would sit with labels on.

	Args:
		item_count: Number of items.
		settings: Export settings.

	Returns:
		SheetLayout with one placement per item in input order.
	"""
	page = resolve_page(settings)
	grid = compute_grid(item_count, settings.items_per_row, page)
	qr_size = qsl.config.mm_to_points(settings.qr_size_mm)
	label_band = LABEL_BAND_HEIGHT
	placements = [
		compute_placement(index, grid, page, qr_size, label_band)
		for index in range(item_count)
	]
	return SheetLayout(
		page=page,
		grid=grid,
		qr_size=qr_size,
		label_band=label_band,
		placements=placements,
	)
