"""
Paper catalog and unit conversion.
"""

# Standard Library
import dataclasses

# local repo modules
import tarp_poster_maker as tpm
import tarp_poster_maker.config
import tarp_poster_maker.errors


PosterConfig = tpm.config.PosterConfig
MissingPaperError = tpm.errors.MissingPaperError

MM_PER_INCH = tpm.config.MM_PER_INCH
UNIT_DECIMALS = tpm.config.UNIT_DECIMALS
UNIT_MM = tpm.config.UNIT_MM
UNIT_INCH = tpm.config.UNIT_INCH
ORIENTATION_LANDSCAPE = tpm.config.ORIENTATION_LANDSCAPE
DEFAULT_PAPER_ID = tpm.config.DEFAULT_PAPER_ID

PHYSICAL_FIELDS = ("target_width", "target_height", "margin", "overlap")


@dataclasses.dataclass(frozen=True)
class PaperSize:
	paper_id: str
	name: str
	width: float
	height: float
	category: str


PAPER_SIZES = (
	PaperSize("a3", "A3", 297.0, 420.0, "ISO"),
	PaperSize("a3plus", "A3+ (Super B)", 329.0, 483.0, "ISO"),
	PaperSize("a4", "A4", 210.0, 297.0, "ISO"),
	PaperSize("a5", "A5", 148.0, 210.0, "ISO"),
	PaperSize("a6", "A6", 105.0, 148.0, "ISO"),
	PaperSize("letter", "Letter", 215.9, 279.4, "ANSI"),
	PaperSize("legal", "Legal", 215.9, 355.6, "ANSI"),
	PaperSize("folio", "Folio (Long Bond)", 215.9, 330.2, "ANSI"),
	PaperSize("tabloid", "Tabloid", 279.4, 431.8, "ANSI"),
	PaperSize("4x6", '4" x 6"', 101.6, 152.4, "Photo"),
	PaperSize("5x7", '5" x 7"', 127.0, 177.8, "Photo"),
	PaperSize("8x10", '8" x 10"', 203.2, 254.0, "Photo"),
)
PAPER_CATEGORIES = ("ISO", "ANSI", "Photo")
_PAPERS_BY_ID = {paper.paper_id: paper for paper in PAPER_SIZES}

COLORS = (
	"#000000", "#ffffff", "#ef4444", "#f97316", "#f59e0b", "#84cc16",
	"#10b981", "#06b6d4", "#3b82f6", "#6366f1", "#8b5cf6", "#d946ef", "#f43f5e",
)
FONTS = ("Inter", "Helvetica", "Times New Roman", "Courier New", "Arial", "Georgia")

FONT_CLASS_SANS = "sans"
FONT_CLASS_SERIF = "serif"
FONT_CLASS_MONO = "mono"
# palette fonts that are not sans
FONT_CLASSES = {
	"Times New Roman": FONT_CLASS_SERIF,
	"Georgia": FONT_CLASS_SERIF,
	"Courier New": FONT_CLASS_MONO,
}
GENERIC_FONT_CLASSES = {
	"sans-serif": FONT_CLASS_SANS,
	"serif": FONT_CLASS_SERIF,
	"monospace": FONT_CLASS_MONO,
}


#============================================
def to_physical(value: float, unit: str) -> float:
	"""
	Convert a value in the given unit to millimeters.

	Args:
		value: Value in `unit`.
		unit: Unit string.

	Returns:
		Millimeters.
	"""
	if unit == UNIT_INCH:
		return value * MM_PER_INCH
	return value


#============================================
def from_physical(value_mm: float, unit: str) -> float:
	"""
	Convert millimeters to the given unit.

	Args:
		value_mm: Millimeters.
		unit: Target unit string.

	Returns:
		Value in `unit`.
	"""
	if unit == UNIT_INCH:
		return value_mm / MM_PER_INCH
	return value_mm


#============================================
def convert_value(value: float, from_unit: str, to_unit: str, digits: int = UNIT_DECIMALS) -> float:
	"""
	Convert between units, rounded to keep toggled values stable.

	Args:
		value: Value in `from_unit`.
		from_unit: Source unit.
		to_unit: Target unit.
		digits: Decimal places to keep.

	Returns:
		Rounded value in `to_unit`.
	"""
	if from_unit == to_unit:
		return value
	return round(from_physical(to_physical(value, from_unit), to_unit), digits)


#============================================
def convert_config_units(config: PosterConfig, new_unit: str) -> PosterConfig:
	"""
	Switch a config to another unit, converting every physical field.

	Args:
		config: Current poster config.
		new_unit: Unit to switch to.

	Returns:
		New PosterConfig in `new_unit`.
	"""
	if config.unit == new_unit:
		return config
	changes = {"unit": new_unit}
	for name in PHYSICAL_FIELDS:
		changes[name] = convert_value(getattr(config, name), config.unit, new_unit)
	return dataclasses.replace(config, **changes)


#============================================
def get_paper(paper_id: str) -> PaperSize:
	"""
	Look up a catalog entry.

	Args:
		paper_id: Paper id like "a4".

	Returns:
		PaperSize.

	Raises:
		MissingPaperError: If the id is not in the catalog.
	"""
	paper = _PAPERS_BY_ID.get(paper_id)
	if paper is None:
		raise MissingPaperError(paper_id)
	return paper


#============================================
def resolve_paper(paper_id: str, unit: str, verbose: bool = False) -> tuple[PaperSize, float, float]:
	"""
	Resolve a paper id into its dimensions in the requested unit.

	Unknown ids fall back to the default paper.

	Args:
		paper_id: Paper id.
		unit: Unit for the returned dimensions.
		verbose: Print a note when falling back.

	Returns:
		Tuple of (paper, width, height).
	"""
	try:
		paper = get_paper(paper_id)
	except MissingPaperError as error:
		paper = _PAPERS_BY_ID[DEFAULT_PAPER_ID]
		if verbose:
			print(f"Warning: {error}, using {paper.name}")
	width = from_physical(paper.width, unit)
	height = from_physical(paper.height, unit)
	return (paper, width, height)


#============================================
def apply_orientation(width: float, height: float, orientation: str) -> tuple[float, float]:
	"""
	Swap paper dimensions for landscape pages.
	"""
	if orientation == ORIENTATION_LANDSCAPE:
		return (height, width)
	return (width, height)


#============================================
def papers_by_category() -> dict[str, list[PaperSize]]:
	"""
	Group the catalog by category, keeping catalog order.

	Returns:
		Dict of category to paper list.
	"""
	groups: dict[str, list[PaperSize]] = {category: [] for category in PAPER_CATEGORIES}
	for paper in PAPER_SIZES:
		groups.setdefault(paper.category, []).append(paper)
	return groups


#============================================
def format_paper_dimension(value_mm: float, unit: str) -> str:
	"""
	Format a catalog dimension for display.

	Args:
		value_mm: Dimension in millimeters.
		unit: Display unit.

	Returns:
		Whole millimeters, or inches with two decimals.
	"""
	if unit == UNIT_MM:
		return str(int(round(value_mm)))
	return f"{value_mm / MM_PER_INCH:.2f}"


#============================================
def palette_font(family: str) -> str | None:
	"""
	Match a family name against the font palette, ignoring case.

	Args:
		family: CSS font family.

	Returns:
		Palette spelling of the family, or None when it is not offered.
	"""
	normalized = (family or "").strip().lower()
	for name in FONTS:
		if name.lower() == normalized:
			return name
	return None


#============================================
def font_class(family: str) -> str:
	"""
	Classify a font family as sans, serif or mono.

	Palette fonts use their known class, CSS generic families map
	directly, anything else is treated as sans.
	"""
	name = palette_font(family)
	if name is not None:
		return FONT_CLASSES.get(name, FONT_CLASS_SANS)
	normalized = (family or "").strip().lower()
	return GENERIC_FONT_CLASSES.get(normalized, FONT_CLASS_SANS)
