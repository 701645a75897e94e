"""
Job file loading for the command line tool.
"""

# Standard Library
import dataclasses
import json
import pathlib

# local repo modules
import qr_sheet_layout as qsl
import qr_sheet_layout.config


ExportSettings = qsl.config.ExportSettings
QRItem = qsl.config.QRItem

DEFAULT_QR_SIZE_MM = 30.0
DEFAULT_ITEMS_PER_ROW = 3


@dataclasses.dataclass
class ExportJob:
	settings: ExportSettings
	items: list[QRItem]
	output_name: str | None = None
	missing_images: list[str] = dataclasses.field(default_factory=list)


#============================================
def get_value(data: dict, keys: tuple[str, ...], default=None):
	"""
	Return the first present key, accepting camelCase or snake_case names.
	"""
	for key in keys:
		if key in data:
			return data[key]
	return default


#============================================
def build_settings(data: dict, item_count: int = 0) -> ExportSettings:
	"""
	Build export settings from a job's settings object.

	Args:
		data: Settings dictionary.
		item_count: Number of items in the job, used by QR size presets.

	Returns:
		ExportSettings.
	"""
	page_format = get_value(data, ("pageFormat", "page_format", "paperSize"), qsl.config.DEFAULT_PAGE_FORMAT)
	margin = get_value(data, ("margin", "margins", "marginMm", "margin_mm"))
	qr_size = get_value(data, ("qrSize", "qr_size", "qrSizeMm", "qr_size_mm"), DEFAULT_QR_SIZE_MM)
	items_per_row = get_value(data, ("itemsPerRow", "items_per_row", "qrCodesPerRow"), DEFAULT_ITEMS_PER_ROW)
	include_cutlines = get_value(data, ("includeCutlines", "include_cutlines", "showCutlines"), True)
	include_labels = get_value(data, ("includeLabels", "include_labels"), True)

	items_per_row = int(items_per_row)
	if items_per_row < 1:
		raise ValueError(f"itemsPerRow must be at least 1, got {items_per_row}")
	margin_mm = qsl.config.resolve_margin_mm(margin, str(page_format))
	if margin_mm < 0:
		raise ValueError(f"margin must not be negative, got {margin!r}")
	qr_size_mm = qsl.config.resolve_qr_size_mm(qr_size, str(page_format), margin_mm, item_count, items_per_row)
	if qr_size_mm <= 0:
		raise ValueError(f"qrSize must be positive, got {qr_size!r}")

	return ExportSettings(
		page_format=str(page_format),
		margin_mm=margin_mm,
		qr_size_mm=qr_size_mm,
		items_per_row=items_per_row,
		include_cutlines=bool(include_cutlines),
		include_labels=bool(include_labels),
	)


#============================================
def build_item(data: dict, index: int, base_dir: pathlib.Path) -> tuple[QRItem, bool]:
	"""
	Build a QR item from a job entry.

	Args:
		data: Item dictionary with id, name and image or image_path.
		index: Position in the job, used for a default id.
		base_dir: Directory relative image paths resolve against.

	Returns:
		Tuple of (QRItem, image_missing).
	"""
	item_id = str(get_value(data, ("id",), f"item-{index + 1}"))
	name = str(get_value(data, ("name", "label"), ""))
	raster_image = get_value(data, ("image", "qrDataUrl", "imageData"))
	image_path = get_value(data, ("image_path", "imagePath"))
	missing = False
	if raster_image is None and image_path:
		path = pathlib.Path(image_path)
		if not path.is_absolute():
			path = base_dir / path
		if path.is_file():
			raster_image = path.read_bytes()
		else:
			missing = True
	return (QRItem(id=item_id, name=name, raster_image=raster_image), missing)


#============================================
def build_job(data: dict, base_dir: pathlib.Path) -> ExportJob:
	"""
	Build one export job from a job dictionary.
	"""
	if not isinstance(data, dict):
		raise ValueError("Each job must be a JSON object")
	items: list[QRItem] = []
	missing_images: list[str] = []
	for index, entry in enumerate(get_value(data, ("items", "qrCodes"), [])):
		item, missing = build_item(entry, index, base_dir)
		items.append(item)
		if missing:
			missing_images.append(item.id)
	settings = build_settings(get_value(data, ("settings",), {}), len(items))
	output_name = get_value(data, ("outputFileName", "output_name"))
	return ExportJob(
		settings=settings,
		items=items,
		output_name=output_name,
		missing_images=missing_images,
	)


#============================================
def load_jobs(path: pathlib.Path) -> list[ExportJob]:
	"""
	Load export jobs from a JSON file.

	The file holds a single job object or a list of them.

	Args:
		path: Job file path.

	Returns:
		List of ExportJob.
	"""
	try:
		with path.open("r", encoding="utf-8") as handle:
			payload = json.load(handle)
	except OSError as error:
		raise ValueError(f"Cannot read job file {path}: {error}") from error
	except json.JSONDecodeError as error:
		raise ValueError(f"Invalid JSON in {path}: {error}") from error
	if not isinstance(payload, list):
		payload = [payload]
	if not payload:
		raise ValueError(f"No jobs in {path}")
	base_dir = path.parent
	return [build_job(entry, base_dir) for entry in payload]


#============================================
def resolve_output_paths(
	output_path: pathlib.Path,
	jobs: list[ExportJob],
	epoch: int,
) -> list[pathlib.Path]:
	"""
	Pick an output file per job.

	A "*" in the file name becomes "<epoch>-<n>". With several jobs and no
	wildcard, a job's own output name is used, else a numbered suffix.

	Args:
		output_path: Output PDF path from the command line.
		jobs: Export jobs.
		epoch: Unix time in seconds.

	Returns:
		One path per job.
	"""
	paths: list[pathlib.Path] = []
	for index, job in enumerate(jobs, start=1):
		name = output_path.name
		if "*" in name:
			name = name.replace("*", f"{epoch}-{index}", 1)
		elif len(jobs) > 1:
			if job.output_name:
				name = job.output_name
			else:
				name = f"{output_path.stem}-{index}{output_path.suffix}"
		paths.append(output_path.parent / name)
	return paths
