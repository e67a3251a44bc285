"""
CLI entry points for tiled poster export.
"""

# Standard Library
import argparse
import dataclasses
import pathlib
import sys
import time

# local repo modules
import tarp_poster_maker as tpm
import tarp_poster_maker.compose
import tarp_poster_maker.config
import tarp_poster_maker.errors
import tarp_poster_maker.paper
import tarp_poster_maker.pdf_sink
import tarp_poster_maker.project
import tarp_poster_maker.session


PosterConfig = tpm.config.PosterConfig
PosterError = tpm.errors.PosterError

DEFAULT_OUTPUT_NAME = tpm.config.DEFAULT_OUTPUT_NAME
DEFAULT_PREVIEW_NAME = tpm.config.DEFAULT_PREVIEW_NAME


#============================================
def build_config(args: argparse.Namespace, base: PosterConfig | None = None) -> PosterConfig:
	"""
	Build the poster config from a project config and CLI overrides.

	A unit override converts the project's physical values first, so
	other overrides are read in the new unit.

	Args:
		args: Parsed argparse namespace.
		base: Config loaded from the project file.

	Returns:
		PosterConfig.
	"""
	config = base if base is not None else PosterConfig()
	if args.unit is not None:
		config = tpm.paper.convert_config_units(config, args.unit)

	changes = {}
	if args.mode is not None:
		changes["mode"] = args.mode
	if args.rows is not None:
		changes["grid_rows"] = args.rows
	if args.cols is not None:
		changes["grid_cols"] = args.cols
	if args.size is not None:
		changes["target_width"], changes["target_height"] = args.size
	if args.paper_id is not None:
		changes["paper_id"] = args.paper_id
	if args.orientation is not None:
		changes["orientation"] = args.orientation
	if args.margin is not None:
		changes["margin"] = args.margin
	if args.show_cut_lines is not None:
		changes["show_cut_lines"] = args.show_cut_lines
	if args.cut_line_style is not None:
		changes["cut_line_style"] = args.cut_line_style
	if args.show_page_numbers is not None:
		changes["show_page_numbers"] = args.show_page_numbers
	return dataclasses.replace(config, **changes)


#============================================
def parse_size(value: str) -> tuple[float, float]:
	"""
	Parse a WIDTHxHEIGHT string.

	Args:
		value: String like "36x48".

	Returns:
		Tuple of (width, height).
	"""
	parts = value.lower().split("x")
	if len(parts) != 2:
		raise argparse.ArgumentTypeError(f"invalid size {value!r}, use WIDTHxHEIGHT like 36x48")
	try:
		return (float(parts[0]), float(parts[1]))
	except ValueError as error:
		raise argparse.ArgumentTypeError(f"invalid size {value!r}, use WIDTHxHEIGHT like 36x48") from error


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command line arguments.

	Returns:
		Parsed argparse namespace.
	"""
	parser = argparse.ArgumentParser(description="Export a layered poster as tiled printable PDF pages.")
	parser.add_argument("project", nargs="?", default=None, help="Project JSON file.")

	layout_group = parser.add_argument_group("Layout")
	layout_group.add_argument("-g", "--grid", dest="mode", action="store_const", const=tpm.config.MODE_GRID, help="Size the poster from a rows x cols grid.")
	layout_group.add_argument("-s", "--size", dest="size", type=parse_size, default=None, help="Poster size WIDTHxHEIGHT; selects size mode.")
	layout_group.add_argument("-r", "--rows", dest="rows", type=int, default=None, help="Grid rows.")
	layout_group.add_argument("-c", "--cols", dest="cols", type=int, default=None, help="Grid columns.")
	layout_group.add_argument("-u", "--unit", dest="unit", choices=tpm.config.UNITS, default=None, help="Unit for all physical values.")

	paper_group = parser.add_argument_group("Paper")
	paper_group.add_argument("-p", "--paper", dest="paper_id", default=None, help="Paper id, see --list-papers.")
	paper_group.add_argument("-l", "--landscape", dest="orientation", action="store_const", const=tpm.config.ORIENTATION_LANDSCAPE, help="Landscape pages.")
	paper_group.add_argument("-L", "--portrait", dest="orientation", action="store_const", const=tpm.config.ORIENTATION_PORTRAIT, help="Portrait pages.")
	paper_group.add_argument("-m", "--margin", dest="margin", type=float, default=None, help="Margin on all four sides.")
	paper_group.add_argument("--list-papers", dest="list_papers", action="store_true", help="List paper sizes and exit.")

	guide_group = parser.add_argument_group("Guides")
	guide_group.add_argument("-k", "--cut-lines", dest="show_cut_lines", action="store_const", const=True, help="Draw cut lines.")
	guide_group.add_argument("-K", "--no-cut-lines", dest="show_cut_lines", action="store_const", const=False, help="Disable cut lines.")
	guide_group.add_argument("--cut-style", dest="cut_line_style", choices=tpm.config.CUT_LINE_STYLES, default=None, help="Cut line style.")
	guide_group.add_argument("-n", "--page-numbers", dest="show_page_numbers", action="store_const", const=True, help="Label each page.")
	guide_group.add_argument("-N", "--no-page-numbers", dest="show_page_numbers", action="store_const", const=False, help="Disable page labels.")

	behavior_group = parser.add_argument_group("Behavior")
	behavior_group.add_argument("--list-styles", dest="list_styles", action="store_true", help="List text fonts and colors and exit.")
	behavior_group.add_argument("--scale", dest="scale", type=float, default=None, help="Raster pixels per unit.")
	behavior_group.add_argument("--preview", dest="preview", action="store_true", help=f"Also write {DEFAULT_PREVIEW_NAME}.")
	behavior_group.add_argument(
		"--stop-before-rendering",
		dest="stop_before_rendering",
		action="store_true",
		help="Print the resolved layout and stop.",
	)

	parser.set_defaults(
		mode=None,
		orientation=None,
		show_cut_lines=None,
		show_page_numbers=None,
		list_papers=False,
		list_styles=False,
		preview=False,
		stop_before_rendering=False,
	)

	args = parser.parse_args(argv)
	if args.size is not None and args.mode is None:
		args.mode = tpm.config.MODE_SIZE
	return args


#============================================
def print_paper_list(unit: str) -> None:
	"""
	Print the paper catalog grouped by category.
	"""
	for category, papers in tpm.paper.papers_by_category().items():
		print(category)
		for paper in papers:
			width = tpm.paper.format_paper_dimension(paper.width, unit)
			height = tpm.paper.format_paper_dimension(paper.height, unit)
			print(f"  {paper.paper_id:8s} {paper.name} ({width} x {height} {unit})")


#============================================
def print_style_list() -> None:
	"""
	Print the text font and color palettes.
	"""
	print("Fonts")
	for family in tpm.paper.FONTS:
		print(f"  {family} ({tpm.paper.font_class(family)})")
	print("Colors")
	for color in tpm.paper.COLORS:
		print(f"  {color}")


#============================================
def run_pipeline(args: argparse.Namespace) -> None:
	"""
	Run the full pipeline from project input to tiled PDF.

	Args:
		args: Parsed argparse namespace.
	"""
	base_config = None
	layers = []
	if args.project:
		project_path = pathlib.Path(args.project)
		print(f"Project: {project_path}")
		base_config, layers = tpm.project.load_project(project_path)
	config = build_config(args, base_config)

	if args.list_papers:
		print_paper_list(config.unit)
		return
	if args.list_styles:
		print_style_list()
		return

	paper, _width, _height = tpm.paper.resolve_paper(config.paper_id, config.unit, verbose=True)
	# the manifest records the paper actually used
	config = dataclasses.replace(config, paper_id=paper.paper_id)
	session = tpm.session.EditorSession(config, layers)
	layout = session.layout()
	print(f"Mode: {config.mode}")
	print(f"Paper: {paper.name} [{paper.paper_id}] ({config.orientation})")
	print(f"Poster: {layout.poster_width:.2f} x {layout.poster_height:.2f} {layout.unit}")
	print(f"Printable area: {layout.printable_width:.2f} x {layout.printable_height:.2f} {layout.unit}")
	print(f"Grid: {layout.rows} rows x {layout.cols} cols")
	print(f"Layers: {len(layers)}")
	if args.stop_before_rendering:
		print("Stop before rendering: True")
		return

	start_time = time.perf_counter()
	if args.preview:
		preview = tpm.compose.render_preview(layout, session.layers, session.zoom)
		preview.convert("RGB").save(DEFAULT_PREVIEW_NAME)
		print(f"Preview written: {DEFAULT_PREVIEW_NAME}")

	sink = tpm.pdf_sink.ReportlabPdfSink()
	result = session.export(sink, DEFAULT_OUTPUT_NAME, scale=args.scale, verbose=True)
	print(f"Pages written: {result.pages}")
	if result.skipped_layers:
		print(f"Layers skipped: {len(result.skipped_layers)}")
	if result.blank_tiles:
		print(f"Blank tiles: {result.blank_tiles}")

	manifest_path = pathlib.Path(f"{DEFAULT_OUTPUT_NAME}.json")
	tpm.project.write_manifest(manifest_path, config, layout, result)
	total_time = time.perf_counter() - start_time
	print(f"Timing: total={total_time:.2f}s")
	print(f"Manifest written: {manifest_path}")


#============================================
def main(argv: list[str] | None = None) -> None:
	"""
	Main entry point.
	"""
	args = parse_args(argv)
	try:
		run_pipeline(args)
	except PosterError as error:
		print(f"Error: {error}", file=sys.stderr)
		sys.exit(1)
