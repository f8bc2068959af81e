"""
CLI entry points for report export and image watermarking.
"""

# Standard Library
import argparse
import pathlib
import time

# local repo modules
import salon_report_engine as sre
import salon_report_engine.builders
import salon_report_engine.config
import salon_report_engine.reports
import salon_report_engine.render
import salon_report_engine.watermark


RenderConfig = sre.config.RenderConfig
PageGeometry = sre.config.PageGeometry

DEFAULT_MARGIN = sre.config.DEFAULT_MARGIN
WATERMARK_RELATIVE_WIDTH = sre.config.WATERMARK_RELATIVE_WIDTH
WATERMARK_OPACITY = sre.config.WATERMARK_OPACITY
WATERMARK_ANCHOR = sre.config.WATERMARK_ANCHOR
WATERMARK_ANCHORS = sre.config.WATERMARK_ANCHORS


#============================================
def build_render_config(args: argparse.Namespace, title: str | None) -> RenderConfig:
	"""
	Build render config from CLI args.

	Args:
		args: Parsed argparse namespace.
		title: PDF title metadata.

	Returns:
		RenderConfig.
	"""
	return RenderConfig(
		geometry=PageGeometry(margin=args.margin),
		title=title,
		skip_failed_diagrams=not args.strict_diagrams,
		diagram_timeout=args.diagram_timeout,
	)


#============================================
def read_optional(path: str | None) -> bytes | None:
	if path is None:
		return None
	return pathlib.Path(path).read_bytes()


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command line arguments.

	Returns:
		Parsed argparse namespace.
	"""
	parser = argparse.ArgumentParser(description="Export salon reports to PDF and watermark generated images.")
	subparsers = parser.add_subparsers(dest="command", required=True)

	render_parser = subparsers.add_parser("render", help="Render a report JSON file to PDF.")
	render_parser.add_argument("kind", choices=sre.reports.REPORT_KINDS, help="Report kind.")
	render_parser.add_argument("report_path", help="Report JSON path.")
	render_parser.add_argument("-o", "--output", dest="output_path", required=True, help="Output PDF path.")

	image_group = render_parser.add_argument_group("Images")
	image_group.add_argument("-c", "--client", dest="client_path", default=None, help="Client photo.")
	image_group.add_argument("-r", "--reference", dest="reference_path", default=None, help="Reference photo.")
	image_group.add_argument("-R", "--result", dest="result_path", default=None, help="Generated result image.")
	image_group.add_argument(
		"-w", "--watermark-result", dest="watermark_result", action="store_true",
		help="Watermark the result image before placing it.",
	)

	layout_group = render_parser.add_argument_group("Layout")
	layout_group.add_argument("-m", "--margin", dest="margin", type=float, default=DEFAULT_MARGIN, help="Page margin in mm.")
	layout_group.add_argument(
		"-s", "--strict-diagrams", dest="strict_diagrams", action="store_true",
		help="Abort when a diagram fails to rasterize.",
	)
	layout_group.add_argument(
		"-t", "--diagram-timeout", dest="diagram_timeout", type=float, default=None,
		help="Seconds allowed per diagram.",
	)

	watermark_parser = subparsers.add_parser("watermark", help="Watermark an image.")
	watermark_parser.add_argument("input_path", help="Source image.")
	watermark_parser.add_argument("-o", "--output", dest="output_path", required=True, help="Output image path.")
	watermark_parser.add_argument(
		"-W", "--relative-width", dest="relative_width", type=float,
		default=WATERMARK_RELATIVE_WIDTH, help="Watermark width as a fraction of the image width.",
	)
	watermark_parser.add_argument("-a", "--opacity", dest="opacity", type=float, default=WATERMARK_OPACITY, help="Watermark opacity.")
	watermark_parser.add_argument(
		"-A", "--anchor", dest="anchor", choices=WATERMARK_ANCHORS,
		default=WATERMARK_ANCHOR, help="Corner to place the watermark in.",
	)
	watermark_parser.add_argument("-f", "--format", dest="image_format", default="PNG", help="Output format.")
	watermark_parser.add_argument("-l", "--logo", dest="logo_path", default=None, help="Custom watermark asset.")

	parser.set_defaults(watermark_result=False, strict_diagrams=False)
	args = parser.parse_args(argv)
	return args


#============================================
def run_render(args: argparse.Namespace) -> sre.config.ExportResult:
	"""
	Validate a report, build its document and export the PDF.

	Args:
		args: Parsed argparse namespace.

	Returns:
		ExportResult.
	"""
	print(f"Report kind: {args.kind}")
	print(f"Output PDF: {args.output_path}")

	start_time = time.perf_counter()
	payload = pathlib.Path(args.report_path).read_text(encoding="utf-8")
	report = sre.reports.parse_report(args.kind, payload)

	result_image = read_optional(args.result_path)
	if result_image is not None and args.watermark_result:
		result_image = sre.watermark.watermark_or_original(result_image)
	images = {
		"client": read_optional(args.client_path),
		"reference": read_optional(args.reference_path),
		"result": result_image,
	}
	document = sre.builders.build_report_document(args.kind, report, images)
	print(f"Blocks built: {len(document)}")

	config = build_render_config(args, title=f"Relatório {args.kind}")
	build_end = time.perf_counter()
	result, _data = sre.render.export_document(document, pathlib.Path(args.output_path), config)
	export_end = time.perf_counter()

	print(f"Pages written: {result.pages}")
	print(f"Blocks placed: {result.blocks}")
	if result.skipped_diagrams:
		print(f"Diagrams skipped: {len(result.skipped_diagrams)}")
	print(
		"Timing: build={:.2f}s export={:.2f}s total={:.2f}s".format(
			build_end - start_time,
			export_end - build_end,
			export_end - start_time,
		)
	)
	return result


#============================================
def run_watermark(args: argparse.Namespace) -> None:
	"""
	Watermark one image file.

	Args:
		args: Parsed argparse namespace.
	"""
	if args.logo_path is not None:
		asset = pathlib.Path(args.logo_path).read_bytes()
	else:
		asset = sre.watermark.default_watermark_spec().asset
	spec = sre.watermark.WatermarkSpec(
		asset=asset,
		relative_width=args.relative_width,
		opacity=args.opacity,
		anchor=args.anchor,
	)
	source = pathlib.Path(args.input_path).read_bytes()
	data = sre.watermark.add_watermark(source, spec, args.image_format)
	pathlib.Path(args.output_path).write_bytes(data)
	print(f"Watermarked image written: {args.output_path}")


#============================================
def main(argv: list[str] | None = None) -> None:
	"""
	Main entry point.
	"""
	args = parse_args(argv)
	if args.command == "render":
		run_render(args)
		return
	run_watermark(args)


if __name__ == "__main__":
	main()
