"""
Slice the composited poster into printable pages with cut guides.
"""

# Standard Library
import io

# PIP3 modules
import PIL.Image

# local repo modules
import tarp_poster_maker as tpm
import tarp_poster_maker.compose
import tarp_poster_maker.config
import tarp_poster_maker.errors
import tarp_poster_maker.layers
import tarp_poster_maker.layout
import tarp_poster_maker.pdf_sink


PosterConfig = tpm.config.PosterConfig
LayoutResult = tpm.config.LayoutResult
TilePlan = tpm.config.TilePlan
ExportResult = tpm.config.ExportResult
Layer = tpm.layers.Layer
PdfSink = tpm.pdf_sink.PdfSink

CUT_LINE_NONE = tpm.config.CUT_LINE_NONE
CUT_LINE_DASHED = tpm.config.CUT_LINE_DASHED
DEFAULT_OUTPUT_NAME = tpm.config.DEFAULT_OUTPUT_NAME
TILE_JPEG_QUALITY = tpm.config.TILE_JPEG_QUALITY
GUIDE_COLOR = tpm.config.GUIDE_COLOR
MARK_COLOR = tpm.config.MARK_COLOR
LABEL_COLOR = tpm.config.LABEL_COLOR
LABEL_FONT_SIZE = tpm.config.LABEL_FONT_SIZE
GUIDE_LINE_WIDTH = tpm.config.GUIDE_LINE_WIDTH
GUIDE_DASH_LENGTH = tpm.config.GUIDE_DASH_LENGTH
MARK_LENGTH = tpm.config.MARK_LENGTH
MARK_OFFSET = tpm.config.MARK_OFFSET
LABEL_INSET = tpm.config.LABEL_INSET
PROGRESS_BAR_WIDTH = tpm.config.PROGRESS_BAR_WIDTH


#============================================
def print_progress(prefix: str, current: int, total: int) -> None:
	"""
	Print a simple progress bar.

	Args:
		prefix: Label text.
		current: Current count.
		total: Total count.
	"""
	if total <= 0:
		return
	percent = int(round((current / total) * 100.0))
	filled = int(round(PROGRESS_BAR_WIDTH * percent / 100.0))
	bar = "#" * filled + "-" * (PROGRESS_BAR_WIDTH - filled)
	print(f"{prefix} [{bar}] {current}/{total} ({percent}%)", end="\r")


#============================================
def _pixel_edge(value: float, scale: float) -> int:
	return int(round(round(value * scale, 6)))


#============================================
def plan_tiles(layout: LayoutResult, scale: float) -> list[TilePlan]:
	"""
	Plan the source box of every page on the poster surface.

	Pixel edges are shared between neighbours so the tiles partition
	the surface exactly. The last row and column may be partial tiles.

	Args:
		layout: Resolved layout.
		scale: Pixels per physical unit.

	Returns:
		TilePlan list in row-major order.
	"""
	plans: list[TilePlan] = []
	for row in range(layout.rows):
		top_edge = row * layout.printable_height
		bottom_edge = min(layout.poster_height, top_edge + layout.printable_height)
		for col in range(layout.cols):
			left_edge = col * layout.printable_width
			right_edge = min(layout.poster_width, left_edge + layout.printable_width)
			plans.append(
				TilePlan(
					row=row,
					col=col,
					left=_pixel_edge(left_edge, scale),
					top=_pixel_edge(top_edge, scale),
					right=_pixel_edge(right_edge, scale),
					bottom=_pixel_edge(bottom_edge, scale),
					width=min(layout.printable_width, layout.poster_width - left_edge),
					height=min(layout.printable_height, layout.poster_height - top_edge),
				)
			)
	return plans


#============================================
def extract_tile(surface: PIL.Image.Image, plan: TilePlan) -> PIL.Image.Image:
	"""
	Copy one page's region into a standalone RGB image.

	Args:
		surface: Composited poster surface.
		plan: Tile plan.

	Returns:
		RGB tile image.
	"""
	box = (plan.left, plan.top, plan.right, plan.bottom)
	return surface.crop(box).convert("RGB")


#============================================
def encode_tile(tile: PIL.Image.Image) -> bytes:
	"""
	JPEG encode a tile for embedding in the PDF.
	"""
	buffer = io.BytesIO()
	tile.save(buffer, format="JPEG", quality=TILE_JPEG_QUALITY)
	return buffer.getvalue()


#============================================
def draw_cut_guides(
	sink: PdfSink,
	config: PosterConfig,
	x: float,
	y: float,
	width: float,
	height: float,
) -> None:
	"""
	Outline the printable area and add scissor marks at its corners.

	Args:
		sink: PDF sink.
		config: Poster config.
		x: Printable area left edge.
		y: Printable area top edge.
		width: Printable area width.
		height: Printable area height.
	"""
	unit = config.unit
	line_width = GUIDE_LINE_WIDTH[unit]
	dash_pattern: list[float] = []
	if config.cut_line_style == CUT_LINE_DASHED:
		dash_pattern = [GUIDE_DASH_LENGTH[unit], GUIDE_DASH_LENGTH[unit]]
	sink.set_line_style(line_width, GUIDE_COLOR, dash_pattern)
	sink.draw_rect(x, y, width, height)

	mark_length = MARK_LENGTH[unit]
	mark_offset = MARK_OFFSET[unit]
	sink.set_line_style(line_width, MARK_COLOR, [])
	for corner_x, corner_y, dir_x, dir_y in (
		(x, y, 1.0, 1.0),
		(x + width, y, -1.0, 1.0),
		(x, y + height, 1.0, -1.0),
		(x + width, y + height, -1.0, -1.0),
	):
		# dir points into the printable area
		sink.draw_line(
			corner_x - dir_x * mark_offset,
			corner_y,
			corner_x + dir_x * mark_length,
			corner_y,
		)
		sink.draw_line(
			corner_x,
			corner_y - dir_y * mark_offset,
			corner_x,
			corner_y + dir_y * mark_length,
		)


#============================================
def page_label(row: int, col: int) -> str:
	return f"Page {row + 1}-{col + 1} (Row {row + 1}, Col {col + 1})"


#============================================
def draw_page_label(sink: PdfSink, config: PosterConfig, layout: LayoutResult, row: int, col: int) -> None:
	"""
	Draw the page label near the bottom-left corner.
	"""
	inset = LABEL_INSET[config.unit]
	sink.draw_text(page_label(row, col), inset, layout.page_height - inset, LABEL_FONT_SIZE, LABEL_COLOR)


#============================================
def emit_tile_page(
	sink: PdfSink,
	config: PosterConfig,
	layout: LayoutResult,
	plan: TilePlan,
	surface: PIL.Image.Image,
) -> bool:
	"""
	Emit one page: tile image, cut guides and page label.

	Args:
		sink: PDF sink.
		config: Poster config.
		layout: Resolved layout.
		plan: Tile plan for this page.
		surface: Composited poster surface.

	Returns:
		True if the page got image content, False for a degenerate tile.
	"""
	sink.add_page(layout.page_width, layout.page_height, config.orientation)
	margin = layout.margin
	has_image = not plan.is_degenerate and plan.width > 0 and plan.height > 0
	if has_image:
		tile = extract_tile(surface, plan)
		sink.draw_image(encode_tile(tile), margin, margin, plan.width, plan.height)
		guide_width = plan.width
		guide_height = plan.height
	else:
		guide_width = layout.printable_width
		guide_height = layout.printable_height

	if config.show_cut_lines and config.cut_line_style != CUT_LINE_NONE:
		draw_cut_guides(sink, config, margin, margin, guide_width, guide_height)
	if config.show_page_numbers:
		draw_page_label(sink, config, layout, plan.row, plan.col)
	return has_image


#============================================
def export_poster(
	config: PosterConfig,
	layers: list[Layer],
	sink: PdfSink,
	filename: str = DEFAULT_OUTPUT_NAME,
	scale: float | None = None,
	verbose: bool = False,
) -> ExportResult:
	"""
	Run the full export: resolve, composite, tile and save.

	Config errors are raised before any raster work starts.

	Args:
		config: Poster config.
		layers: Layers in paint order.
		sink: PDF sink receiving the pages.
		filename: Output filename passed to the sink.
		scale: Pixels per physical unit; defaults by unit.
		verbose: Print progress.

	Returns:
		ExportResult.
	"""
	tpm.layout.validate_config(config)
	layout = tpm.layout.resolve_layout(config)
	if scale is None:
		scale = tpm.config.default_scale(config.unit)
	if scale <= 0:
		raise tpm.errors.InvalidConfigError("scale", scale, "must be greater than zero")

	if verbose:
		print(f"Poster: {layout.poster_width:.2f} x {layout.poster_height:.2f} {layout.unit}")
		print(f"Pages: {layout.rows} rows x {layout.cols} cols")
	composite = tpm.compose.composite_poster(layout, layers, scale, verbose=verbose)
	surface = composite.surface
	if verbose:
		print(f"Surface: {surface.width} x {surface.height} px")

	plans = plan_tiles(layout, scale)
	sink.new_document(config.unit, config.orientation)
	blank_tiles = 0
	total = len(plans)
	for index, plan in enumerate(plans, start=1):
		if not emit_tile_page(sink, config, layout, plan, surface):
			blank_tiles += 1
		if verbose:
			print_progress("Pages", index, total)
	if verbose and total > 0:
		print()
	sink.save(filename)

	return ExportResult(
		filename=str(filename),
		pages=total,
		rows=layout.rows,
		cols=layout.cols,
		scale=scale,
		surface_size=surface.size,
		skipped_layers=list(composite.skipped_layers),
		blank_tiles=blank_tiles,
	)
