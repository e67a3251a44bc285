"""
Shared configuration and constants.
"""

# Standard Library
import dataclasses


MM_PER_INCH = 25.4
POINTS_PER_INCH = 72.0
UNIT_DECIMALS = 2

UNIT_MM = "mm"
UNIT_INCH = "in"
UNITS = (UNIT_MM, UNIT_INCH)

MODE_GRID = "grid"
MODE_SIZE = "size"
MODES = (MODE_GRID, MODE_SIZE)

ORIENTATION_PORTRAIT = "portrait"
ORIENTATION_LANDSCAPE = "landscape"
ORIENTATIONS = (ORIENTATION_PORTRAIT, ORIENTATION_LANDSCAPE)

CUT_LINE_SOLID = "solid"
CUT_LINE_DASHED = "dashed"
CUT_LINE_NONE = "none"
CUT_LINE_STYLES = (CUT_LINE_SOLID, CUT_LINE_DASHED, CUT_LINE_NONE)

GRID_MIN = 1
GRID_MAX = 20
LAYOUT_TOLERANCE = 1e-9

DEFAULT_PAPER_ID = "letter"
DEFAULT_OUTPUT_NAME = "tarp-poster.pdf"
DEFAULT_PREVIEW_NAME = "tarp-poster-preview.png"

# raster pixels per physical unit
SCALE_BY_UNIT = {
	UNIT_MM: 5.0,
	UNIT_INCH: 120.0,
}
# editor display pixels per physical unit at zoom 1.0
DISPLAY_SCALE_BY_UNIT = {
	UNIT_MM: 1.0,
	UNIT_INCH: 25.4,
}

TILE_JPEG_QUALITY = 95
BACKGROUND_COLOR = (255, 255, 255, 255)

TEXT_SIZE_FACTOR = 0.05
TEXT_LINE_SPACING = 1.2
DEFAULT_TEXT_COLOR = "#000000"
DEFAULT_FONT_FAMILY = "Inter"
DEFAULT_FONT_WEIGHT = "bold"

MIN_LAYER_SIZE = 0.01
DEFAULT_LAYER_X = 0.25
DEFAULT_LAYER_Y = 0.25
DEFAULT_LAYER_WIDTH = 0.5
DEFAULT_IMAGE_HEIGHT = 0.5
DEFAULT_TEXT_HEIGHT = 0.2
DEFAULT_TEXT_CONTENT = "Double click to edit"

ZOOM_MIN = 0.1
ZOOM_MAX = 2.0
ZOOM_STEP = 0.1
DEFAULT_ZOOM = 0.5

GUIDE_COLOR = (150, 150, 150)
MARK_COLOR = (0, 0, 0)
LABEL_COLOR = (150, 150, 150)
LABEL_FONT_SIZE = 10.0
DEFAULT_FONT_REGULAR = "Helvetica"

# guide geometry per unit, matched to the same printed size
GUIDE_LINE_WIDTH = {UNIT_MM: 0.3, UNIT_INCH: 0.01}
GUIDE_DASH_LENGTH = {UNIT_MM: 2.0, UNIT_INCH: 0.1}
MARK_LENGTH = {UNIT_MM: 5.0, UNIT_INCH: 0.2}
MARK_OFFSET = {UNIT_MM: 2.0, UNIT_INCH: 0.08}
LABEL_INSET = {UNIT_MM: 5.0, UNIT_INCH: 0.2}

PROGRESS_BAR_WIDTH = 20


@dataclasses.dataclass
class PosterConfig:
	mode: str = MODE_GRID
	unit: str = UNIT_INCH
	target_width: float = 36.0
	target_height: float = 48.0
	grid_rows: int = 3
	grid_cols: int = 3
	paper_id: str = DEFAULT_PAPER_ID
	orientation: str = ORIENTATION_PORTRAIT
	margin: float = 0.5
	overlap: float = 0.25
	show_cut_lines: bool = True
	cut_line_style: str = CUT_LINE_DASHED
	show_page_numbers: bool = True


@dataclasses.dataclass(frozen=True)
class LayoutResult:
	poster_width: float
	poster_height: float
	cols: int
	rows: int
	printable_width: float
	printable_height: float
	page_width: float
	page_height: float
	margin: float
	unit: str


@dataclasses.dataclass(frozen=True)
class TilePlan:
	row: int
	col: int
	left: int
	top: int
	right: int
	bottom: int
	width: float
	height: float

	@property
	def pixel_width(self) -> int:
		return self.right - self.left

	@property
	def pixel_height(self) -> int:
		return self.bottom - self.top

	@property
	def is_degenerate(self) -> bool:
		return self.pixel_width <= 0 or self.pixel_height <= 0


@dataclasses.dataclass
class ExportResult:
	filename: str
	pages: int
	rows: int
	cols: int
	scale: float
	surface_size: tuple[int, int]
	skipped_layers: list[str] = dataclasses.field(default_factory=list)
	blank_tiles: int = 0


#============================================
def unit_to_points(value: float, unit: str) -> float:
	"""
	Convert a physical value to PDF points.

	Args:
		value: Value in the given unit.
		unit: Unit string ("mm" or "in").

	Returns:
		Points value.
	"""
	if unit == UNIT_MM:
		return value / MM_PER_INCH * POINTS_PER_INCH
	return value * POINTS_PER_INCH


#============================================
def default_scale(unit: str) -> float:
	"""
	Raster pixels per physical unit for export.

	Args:
		unit: Unit string.

	Returns:
		Pixels per unit.
	"""
	return SCALE_BY_UNIT.get(unit, SCALE_BY_UNIT[UNIT_INCH])
