"""
Sheet generation pipeline and document finalization.
"""

# Standard Library
import collections.abc
import dataclasses
import io
import json
import pathlib
import time

# PIP3 modules
import pypdf

# local repo modules
import qr_sheet_layout as qsl
import qr_sheet_layout.config
import qr_sheet_layout.cutlines
import qr_sheet_layout.draw
import qr_sheet_layout.geometry


QRItem = qsl.config.QRItem
ExportSettings = qsl.config.ExportSettings
GenerationResult = qsl.config.GenerationResult
DrawContext = qsl.draw.DrawContext

ProgressCallback = collections.abc.Callable[[str, int], None]

ITEM_PROGRESS_START = 30
ITEM_PROGRESS_SPAN = 40


#============================================
def report(on_progress: ProgressCallback | None, step: str, percentage: int) -> None:
	"""
	Invoke the progress callback if one was given.
	"""
	if on_progress is not None:
		on_progress(step, percentage)


#============================================
def finalize_document(ctx: DrawContext, buffer: io.BytesIO) -> bytes:
	"""
	Close the page and seal the canvas into bytes.

	Args:
		ctx: Draw context.
		buffer: Buffer the canvas writes into.

	Returns:
		PDF document bytes.
	"""
	ctx.canvas.showPage()
	ctx.canvas.save()
	return buffer.getvalue()


#============================================
def count_pages(document_buffer: bytes) -> int:
	"""
	Count pages in a PDF buffer.
	"""
	reader = pypdf.PdfReader(io.BytesIO(document_buffer))
	return len(reader.pages)


#============================================
def describe_error(error: Exception) -> str:
	"""
	Build a readable message for a failed run.
	"""
	message = str(error).strip()
	if message:
		return message
	return type(error).__name__


#============================================
def generate(
	items: list[QRItem],
	settings: ExportSettings,
	on_progress: ProgressCallback | None = None,
) -> GenerationResult:
	"""
	Lay out QR items on a single printable page.

	All items share one page; the grid shrinks as the item count grows.
	Items with missing or undecodable artwork get a placeholder box. Any
	other failure aborts the run and is reported in the result.

	Args:
		items: QR items in placement order.
		settings: Export settings.
		on_progress: Optional callback receiving (step, percentage).

	Returns:
		GenerationResult.
	"""
	start_time = time.perf_counter()
	try:
		report(on_progress, "Initializing PDF generation", 0)
		layout = qsl.geometry.compute_layout(len(items), settings)

		report(on_progress, "Creating PDF document", 10)
		buffer = io.BytesIO()
		ctx = qsl.draw.create_draw_context(buffer, layout.page)

		report(on_progress, "Adding page elements", 20)
		qsl.draw.draw_page_frame(ctx, layout.page)

		report(on_progress, "Generating QR codes", ITEM_PROGRESS_START)
		total = len(items)

		def on_item(index: int) -> None:
			percentage = ITEM_PROGRESS_START + (index / total) * ITEM_PROGRESS_SPAN
			report(on_progress, "Embedding QR codes", int(round(percentage)))

		qsl.draw.compose_items(ctx, layout, items, settings.include_labels, on_item)

		if settings.include_cutlines:
			report(on_progress, "Adding cutlines", 80)
			qsl.cutlines.draw_cutlines(ctx, layout)

		report(on_progress, "Finalizing PDF", 95)
		document_buffer = finalize_document(ctx, buffer)
		page_count = count_pages(document_buffer)
		processing_time_ms = int(round((time.perf_counter() - start_time) * 1000.0))
		report(on_progress, "Complete", 100)
	except Exception as error:
		return GenerationResult(success=False, error=describe_error(error))

	return GenerationResult(
		success=True,
		document_buffer=document_buffer,
		page_count=page_count,
		item_count=len(items),
		processing_time_ms=processing_time_ms,
		layout=layout,
	)


#============================================
def build_manifest_record(
	output_path: pathlib.Path,
	settings: ExportSettings,
	result: GenerationResult,
) -> dict:
	"""
	Summarize one generated sheet for the manifest.

	Args:
		output_path: Written PDF path.
		settings: Export settings used.
		result: Generation result.

	Returns:
		JSON-serializable dictionary.
	"""
	record = {
		"output": str(output_path),
		"success": result.success,
		"pages": result.page_count,
		"items": result.item_count,
		"processing_time_ms": result.processing_time_ms,
		"settings": dataclasses.asdict(settings),
	}
	if result.error is not None:
		record["error"] = result.error
	if result.layout is not None:
		page = result.layout.page
		grid = result.layout.grid
		record["layout"] = {
			"page_width": page.page_width,
			"page_height": page.page_height,
			"margin": page.margin,
			"columns": grid.columns,
			"rows": grid.rows,
			"cell_width": grid.cell_width,
			"cell_height": grid.cell_height,
			"qr_size": result.layout.qr_size,
			"label_band": result.layout.label_band,
		}
	return record


#============================================
def write_manifest(manifest_path: pathlib.Path, records: list[dict]) -> None:
	"""
	Write a manifest JSON file.

	Args:
		manifest_path: Output path.
		records: One record per generated sheet.
	"""
	data = {
		"sheets": records,
		"fonts": {
			"regular": qsl.config.DEFAULT_FONT_REGULAR,
		},
	}
	with manifest_path.open("w", encoding="utf-8") as handle:
		json.dump(data, handle, indent=2, sort_keys=True)
