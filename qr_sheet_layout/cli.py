"""
CLI entry points for QR code sheet export.
"""

# Standard Library
import argparse
import dataclasses
import pathlib
import sys
import time

# local repo modules
import qr_sheet_layout as qsl
import qr_sheet_layout.config
import qr_sheet_layout.jobs
import qr_sheet_layout.render


ExportSettings = qsl.config.ExportSettings
ExportJob = qsl.jobs.ExportJob

PROGRESS_BAR_WIDTH = qsl.config.PROGRESS_BAR_WIDTH


#============================================
def print_progress(step: str, percentage: int) -> None:
	"""
	Print a simple progress bar.

	Args:
		step: Current step name.
		percentage: Progress from 0 to 100.
	"""
	percent = max(0, min(100, int(percentage)))
	filled = int(round(PROGRESS_BAR_WIDTH * percent / 100.0))
	bar = "#" * filled + "-" * (PROGRESS_BAR_WIDTH - filled)
	print(f"[{bar}] {percent:3d}% {step:<28}", end="\r")


#============================================
def apply_overrides(settings: ExportSettings, args: argparse.Namespace) -> ExportSettings:
	"""
	Apply command line overrides on top of job settings.

	Args:
		settings: Settings from the job file.
		args: Parsed argparse namespace.

	Returns:
		ExportSettings.
	"""
	changes = {}
	if args.page_format is not None:
		changes["page_format"] = args.page_format
	if args.items_per_row is not None:
		changes["items_per_row"] = args.items_per_row
	if args.include_cutlines is not None:
		changes["include_cutlines"] = args.include_cutlines
	if args.include_labels is not None:
		changes["include_labels"] = args.include_labels
	if not changes:
		return settings
	return dataclasses.replace(settings, **changes)


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command line arguments.

	Returns:
		Parsed argparse namespace.
	"""
	parser = argparse.ArgumentParser(description="Lay out QR code images on a printable PDF sheet.")
	parser.add_argument("job_path", help="JSON job file with settings and items.")

	output_group = parser.add_argument_group("Output")
	output_group.add_argument("-o", "--output", dest="output_path", required=True, help="Output PDF path, '*' is replaced by a timestamp.")
	output_group.add_argument("-m", "--manifest", dest="manifest_path", default=None, help="Output manifest JSON path.")

	layout_group = parser.add_argument_group("Layout")
	layout_group.add_argument(
		"-f", "--page-format",
		dest="page_format",
		choices=sorted(qsl.config.PAPER_SIZES),
		default=None,
		help="Paper format.",
	)
	layout_group.add_argument("-r", "--items-per-row", dest="items_per_row", type=int, default=None, help="Number of grid columns.")

	behavior_group = parser.add_argument_group("Behavior")
	behavior_group.add_argument("-c", "--cutlines", dest="include_cutlines", action="store_true", help="Draw cut guides.")
	behavior_group.add_argument("-C", "--no-cutlines", dest="include_cutlines", action="store_false", help="Disable cut guides.")
	behavior_group.add_argument("-l", "--labels", dest="include_labels", action="store_true", help="Draw item names.")
	behavior_group.add_argument("-L", "--no-labels", dest="include_labels", action="store_false", help="Disable item names.")
	behavior_group.add_argument("-q", "--quiet", dest="quiet", action="store_true", help="Hide the progress bar.")

	parser.set_defaults(
		include_cutlines=None,
		include_labels=None,
		quiet=False,
	)

	args = parser.parse_args(argv)
	if args.items_per_row is not None and args.items_per_row < 1:
		parser.error("--items-per-row must be at least 1")
	return args


#============================================
def run_job(job: ExportJob, output_path: pathlib.Path, args: argparse.Namespace) -> dict:
	"""
	Generate one sheet and write it to disk.

	Args:
		job: Export job.
		output_path: Output PDF path.
		args: Parsed argparse namespace.

	Returns:
		Manifest record for the job.
	"""
	settings = apply_overrides(job.settings, args)
	print(f"Output PDF: {output_path}")
	print(f"Page format: {settings.page_format}")
	print(f"Margin: {settings.margin_mm:.2f} mm")
	print(f"QR size: {settings.qr_size_mm:.2f} mm")
	print(f"Items per row: {settings.items_per_row}")
	print(f"Cutlines: {settings.include_cutlines}")
	print(f"Labels: {settings.include_labels}")
	print(f"Items: {len(job.items)}")
	for item_id in job.missing_images:
		print(f"Image file missing, using placeholder: {item_id}")

	on_progress = None if args.quiet else print_progress
	result = qsl.render.generate(job.items, settings, on_progress)
	if not args.quiet:
		print()

	if result.success and result.document_buffer is not None:
		output_path.parent.mkdir(parents=True, exist_ok=True)
		output_path.write_bytes(result.document_buffer)
		grid = result.layout.grid
		print(f"Grid: {grid.columns} x {grid.rows}")
		print(f"Pages written: {result.page_count}")
		print(f"Items placed: {result.item_count}")
		print(f"Timing: total={result.processing_time_ms / 1000.0:.2f}s")
	else:
		print(f"Generation failed: {result.error}")
	return qsl.render.build_manifest_record(output_path, settings, result)


#============================================
def run_pipeline(args: argparse.Namespace) -> int:
	"""
	Run every job in the job file.

	Args:
		args: Parsed argparse namespace.

	Returns:
		Process exit code.
	"""
	print("QR code sheet export")
	print(f"Job file: {args.job_path}")
	try:
		jobs = qsl.jobs.load_jobs(pathlib.Path(args.job_path))
	except ValueError as error:
		print(f"Error: {error}")
		return 1
	print(f"Jobs found: {len(jobs)}")

	output_paths = qsl.jobs.resolve_output_paths(
		pathlib.Path(args.output_path),
		jobs,
		int(time.time()),
	)
	records: list[dict] = []
	for job, output_path in zip(jobs, output_paths):
		records.append(run_job(job, output_path, args))

	manifest_path = args.manifest_path
	if manifest_path is None:
		manifest_path = f"{output_paths[0]}.json"
	qsl.render.write_manifest(pathlib.Path(manifest_path), records)
	print(f"Manifest written: {manifest_path}")

	failures = [record for record in records if not record["success"]]
	if failures:
		print(f"Failed jobs: {len(failures)}")
		return 1
	return 0


#============================================
def main(argv: list[str] | None = None) -> None:
	"""
	Main entry point.
	"""
	args = parse_args(argv)
	sys.exit(run_pipeline(args))
