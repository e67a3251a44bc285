"""
Poster size and page grid resolution.
"""

# Standard Library
import math
import numbers

# local repo modules
import tarp_poster_maker as tpm
import tarp_poster_maker.config
import tarp_poster_maker.errors
import tarp_poster_maker.paper


PosterConfig = tpm.config.PosterConfig
LayoutResult = tpm.config.LayoutResult
PaperSize = tpm.paper.PaperSize
InvalidConfigError = tpm.errors.InvalidConfigError
InvalidMarginError = tpm.errors.InvalidMarginError

MODE_GRID = tpm.config.MODE_GRID
MODE_SIZE = tpm.config.MODE_SIZE
MODES = tpm.config.MODES
UNITS = tpm.config.UNITS
ORIENTATIONS = tpm.config.ORIENTATIONS
CUT_LINE_STYLES = tpm.config.CUT_LINE_STYLES
GRID_MIN = tpm.config.GRID_MIN
GRID_MAX = tpm.config.GRID_MAX
LAYOUT_TOLERANCE = tpm.config.LAYOUT_TOLERANCE


#============================================
def _check_choice(field: str, value: str, choices: tuple[str, ...]) -> None:
	if value not in choices:
		raise InvalidConfigError(field, value, f"expected one of {', '.join(choices)}")


#============================================
def _check_grid_count(field: str, value) -> None:
	if isinstance(value, bool) or not isinstance(value, numbers.Integral):
		raise InvalidConfigError(field, value, "must be a whole number")
	if value < GRID_MIN or value > GRID_MAX:
		raise InvalidConfigError(field, value, f"must be between {GRID_MIN} and {GRID_MAX}")


#============================================
def _check_positive(field: str, value) -> None:
	if not isinstance(value, numbers.Real) or not math.isfinite(value) or value <= 0:
		raise InvalidConfigError(field, value, "must be greater than zero")


#============================================
def validate_config(config: PosterConfig) -> None:
	"""
	Validate user-editable config fields before layout resolution.

	Args:
		config: Poster config.

	Raises:
		InvalidConfigError: On the first invalid field.
	"""
	_check_choice("mode", config.mode, MODES)
	_check_choice("unit", config.unit, UNITS)
	_check_choice("orientation", config.orientation, ORIENTATIONS)
	_check_choice("cut_line_style", config.cut_line_style, CUT_LINE_STYLES)
	if config.mode == MODE_GRID:
		_check_grid_count("grid_rows", config.grid_rows)
		_check_grid_count("grid_cols", config.grid_cols)
	else:
		_check_positive("target_width", config.target_width)
		_check_positive("target_height", config.target_height)
	margin = config.margin
	if not isinstance(margin, numbers.Real) or not math.isfinite(margin) or margin < 0:
		raise InvalidConfigError("margin", margin, "must be zero or greater")


#============================================
def count_tiles(extent: float, printable: float) -> int:
	"""
	Count the pages needed to cover an extent, allowing a partial last page.

	Args:
		extent: Poster extent along one axis.
		printable: Printable extent of one page along that axis.

	Returns:
		Page count, at least 1.
	"""
	ratio = extent / printable
	count = math.ceil(ratio - LAYOUT_TOLERANCE * max(1.0, ratio))
	return max(1, count)


#============================================
def resolve_layout(config: PosterConfig, paper: PaperSize | None = None) -> LayoutResult:
	"""
	Derive poster size, page grid and printable area from a config.

	Args:
		config: Poster config.
		paper: Optional paper entry; resolved from config.paper_id when None.

	Returns:
		LayoutResult in the config's unit.

	Raises:
		InvalidMarginError: If the margin leaves no printable area.
	"""
	if paper is None:
		_paper, paper_width, paper_height = tpm.paper.resolve_paper(config.paper_id, config.unit)
	else:
		paper_width = tpm.paper.from_physical(paper.width, config.unit)
		paper_height = tpm.paper.from_physical(paper.height, config.unit)
	page_width, page_height = tpm.paper.apply_orientation(paper_width, paper_height, config.orientation)

	printable_width = page_width - 2.0 * config.margin
	printable_height = page_height - 2.0 * config.margin
	if printable_width <= 0 or printable_height <= 0:
		raise InvalidMarginError(config.margin, printable_width, printable_height, config.unit)

	if config.mode == MODE_GRID:
		cols = config.grid_cols
		rows = config.grid_rows
		poster_width = cols * printable_width
		poster_height = rows * printable_height
	else:
		poster_width = config.target_width
		poster_height = config.target_height
		cols = count_tiles(poster_width, printable_width)
		rows = count_tiles(poster_height, printable_height)

	return LayoutResult(
		poster_width=poster_width,
		poster_height=poster_height,
		cols=cols,
		rows=rows,
		printable_width=printable_width,
		printable_height=printable_height,
		page_width=page_width,
		page_height=page_height,
		margin=config.margin,
		unit=config.unit,
	)


#============================================
def compute_page_boundaries(layout: LayoutResult) -> tuple[list[float], list[float]]:
	"""
	Compute the page boundary positions shown as the editor grid overlay.

	Args:
		layout: Resolved layout.

	Returns:
		Tuple of (column x positions, row y positions) in physical units,
		including both outer edges.
	"""
	col_edges = [
		min(layout.poster_width, index * layout.printable_width)
		for index in range(layout.cols + 1)
	]
	row_edges = [
		min(layout.poster_height, index * layout.printable_height)
		for index in range(layout.rows + 1)
	]
	return (col_edges, row_edges)
