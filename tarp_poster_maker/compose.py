"""
Rasterize poster layers onto one high resolution surface.
"""

# Standard Library
import base64
import binascii
import dataclasses
import functools
import io
import math

# PIP3 modules
import PIL.Image
import PIL.ImageColor
import PIL.ImageDraw
import PIL.ImageFont

# local repo modules
import tarp_poster_maker as tpm
import tarp_poster_maker.config
import tarp_poster_maker.errors
import tarp_poster_maker.layers
import tarp_poster_maker.layout
import tarp_poster_maker.paper


Layer = tpm.layers.Layer
LayoutResult = tpm.config.LayoutResult
ImageDecodeFailure = tpm.errors.ImageDecodeFailure

KIND_IMAGE = tpm.layers.KIND_IMAGE
KIND_TEXT = tpm.layers.KIND_TEXT
BACKGROUND_COLOR = tpm.config.BACKGROUND_COLOR
TEXT_SIZE_FACTOR = tpm.config.TEXT_SIZE_FACTOR
TEXT_LINE_SPACING = tpm.config.TEXT_LINE_SPACING
DEFAULT_TEXT_COLOR = tpm.config.DEFAULT_TEXT_COLOR
DISPLAY_SCALE_BY_UNIT = tpm.config.DISPLAY_SCALE_BY_UNIT

GRID_OVERLAY_COLOR = (96, 165, 250, 110)

FONT_CLASS_SANS = tpm.paper.FONT_CLASS_SANS
FONT_CLASS_SERIF = tpm.paper.FONT_CLASS_SERIF
FONT_CLASS_MONO = tpm.paper.FONT_CLASS_MONO

# TrueType fallbacks keyed by (font class, bold)
FONT_FILES = {
	(FONT_CLASS_SANS, False): ("DejaVuSans.ttf", "LiberationSans-Regular.ttf", "Arial.ttf", "arial.ttf"),
	(FONT_CLASS_SANS, True): ("DejaVuSans-Bold.ttf", "LiberationSans-Bold.ttf", "Arial Bold.ttf", "arialbd.ttf"),
	(FONT_CLASS_SERIF, False): ("DejaVuSerif.ttf", "LiberationSerif-Regular.ttf", "Times New Roman.ttf", "times.ttf"),
	(FONT_CLASS_SERIF, True): ("DejaVuSerif-Bold.ttf", "LiberationSerif-Bold.ttf", "Times New Roman Bold.ttf", "timesbd.ttf"),
	(FONT_CLASS_MONO, False): ("DejaVuSansMono.ttf", "LiberationMono-Regular.ttf", "Courier New.ttf", "cour.ttf"),
	(FONT_CLASS_MONO, True): ("DejaVuSansMono-Bold.ttf", "LiberationMono-Bold.ttf", "Courier New Bold.ttf", "courbd.ttf"),
}
BOLD_WEIGHTS = ("bold", "bolder", "600", "700", "800", "900")


@dataclasses.dataclass
class CompositeResult:
	surface: PIL.Image.Image
	scale: float
	skipped_layers: list[str] = dataclasses.field(default_factory=list)


#============================================
def surface_size(layout: LayoutResult, scale: float) -> tuple[int, int]:
	"""
	Pixel size of the full poster surface.

	Args:
		layout: Resolved layout.
		scale: Pixels per physical unit.

	Returns:
		Tuple of (width, height) in pixels.
	"""
	# round first so 22.5 * 120 does not ceil to 2701
	width = max(1, math.ceil(round(layout.poster_width * scale, 6)))
	height = max(1, math.ceil(round(layout.poster_height * scale, 6)))
	return (width, height)


#============================================
def pixel_box(layer: Layer, surface_width: int, surface_height: int) -> tuple[int, int, int, int]:
	"""
	Snap a layer's fractional bounds to whole surface pixels.

	Args:
		layer: Layer.
		surface_width: Surface width in pixels.
		surface_height: Surface height in pixels.

	Returns:
		Tuple of (left, top, width, height).
	"""
	x, y, width, height = tpm.layers.layer_rect(layer, surface_width, surface_height)
	left = int(round(x))
	top = int(round(y))
	right = int(round(x + width))
	bottom = int(round(y + height))
	return (left, top, right - left, bottom - top)


#============================================
def parse_color(value: str | None, default: str = DEFAULT_TEXT_COLOR) -> tuple[int, int, int, int]:
	"""
	Parse a CSS style color into RGBA.

	Args:
		value: Color like "#ef4444" or "red".
		default: Color used when the value is empty or invalid.

	Returns:
		RGBA tuple.
	"""
	try:
		return PIL.ImageColor.getcolor(value or default, "RGBA")
	except ValueError:
		return PIL.ImageColor.getcolor(default, "RGBA")


#============================================
def decode_image(layer: Layer) -> PIL.Image.Image:
	"""
	Decode an image layer's handle into an RGBA image.

	Accepts a PIL image, encoded image bytes, a data URL, or a bare
	base64 string.

	Args:
		layer: Image layer.

	Returns:
		Loaded RGBA image.

	Raises:
		ImageDecodeFailure: If the handle cannot be decoded.
	"""
	content = layer.content
	if isinstance(content, PIL.Image.Image):
		return content.convert("RGBA")
	if content is None:
		raise ImageDecodeFailure(layer.layer_id, "no image content")
	try:
		if isinstance(content, str):
			encoded = content
			if content.startswith("data:"):
				header, _sep, encoded = content.partition(",")
				if ";base64" not in header:
					raise ImageDecodeFailure(layer.layer_id, "data URL is not base64 encoded")
			data = base64.b64decode(encoded, validate=True)
		else:
			data = bytes(content)
		image = PIL.Image.open(io.BytesIO(data))
		image.load()
	except (OSError, ValueError, TypeError, binascii.Error, PIL.Image.DecompressionBombError) as error:
		raise ImageDecodeFailure(layer.layer_id, str(error)) from error
	return image.convert("RGBA")


#============================================
def _font_candidates(family: str, weight: str) -> tuple[str, ...]:
	"""
	List TrueType files to try for a family, most specific first.

	Args:
		family: CSS font family; palette fonts match case-insensitively.
		weight: CSS font weight.

	Returns:
		Tuple of font file names.
	"""
	is_bold = str(weight).lower() in BOLD_WEIGHTS
	fallbacks = FONT_FILES[(tpm.paper.font_class(family), is_bold)]
	name = tpm.paper.palette_font(family) or (family or "").strip()
	if not name:
		return fallbacks
	own = f"{name} Bold.ttf" if is_bold else f"{name}.ttf"
	return (own,) + fallbacks


#============================================
@functools.lru_cache(maxsize=64)
def load_font(family: str, weight: str, size: int) -> PIL.ImageFont.FreeTypeFont:
	"""
	Load a TrueType face for a style, falling back to Pillow's default face.

	Args:
		family: CSS font family.
		weight: CSS font weight.
		size: Pixel size.

	Returns:
		Font object.
	"""
	for name in _font_candidates(family, weight):
		try:
			return PIL.ImageFont.truetype(name, size)
		except OSError:
			continue
	return PIL.ImageFont.load_default(size=size)


#============================================
def compute_text_metrics(layer: Layer, surface_height: float) -> tuple[float, list[str], list[float]]:
	"""
	Compute font size, lines and line offsets for a text layer.

	Font size follows the surface height so text keeps its proportion
	at every export resolution.

	Args:
		layer: Text layer.
		surface_height: Surface height in pixels.

	Returns:
		Tuple of (font_size, lines, vertical offsets from the layer top).
	"""
	multiplier = 1.0
	if layer.style is not None and layer.style.font_size:
		multiplier = layer.style.font_size
	font_size = surface_height * TEXT_SIZE_FACTOR * multiplier
	text = str(layer.content or "").replace("\r\n", "\n")
	lines = text.split("\n")
	offsets = [index * font_size * TEXT_LINE_SPACING for index in range(len(lines))]
	return (font_size, lines, offsets)


#============================================
def render_text_tile(layer: Layer, box_width: int, box_height: int, surface_height: int) -> PIL.Image.Image:
	"""
	Draw a text layer onto its own transparent tile.

	The tile starts at the layer's top-left corner and grows past the
	layer box when the text overflows it; text is never wrapped.

	Args:
		layer: Text layer.
		box_width: Layer box width in pixels.
		box_height: Layer box height in pixels.
		surface_height: Full surface height in pixels.

	Returns:
		RGBA tile.
	"""
	style = layer.style or tpm.layers.LayerStyle()
	font_size, lines, offsets = compute_text_metrics(layer, surface_height)
	font = load_font(style.font_family, style.font_weight, max(1, int(round(font_size))))

	content_width = max(0, box_width)
	content_height = max(0, box_height)
	for line, offset in zip(lines, offsets):
		if not line:
			continue
		bbox = font.getbbox(line)
		content_width = max(content_width, int(math.ceil(bbox[2])))
		content_height = max(content_height, int(math.ceil(offset + bbox[3])))

	tile = PIL.Image.new("RGBA", (max(1, content_width), max(1, content_height)), (0, 0, 0, 0))
	draw = PIL.ImageDraw.Draw(tile)
	if style.background_color and box_width > 0 and box_height > 0:
		draw.rectangle((0, 0, box_width - 1, box_height - 1), fill=parse_color(style.background_color))
	fill = parse_color(style.color)
	for line, offset in zip(lines, offsets):
		if line:
			draw.text((0, offset), line, font=font, fill=fill)
	return tile


#============================================
def render_image_tile(layer: Layer, box_width: int, box_height: int) -> PIL.Image.Image:
	"""
	Decode an image layer and stretch it to fill its box.

	Raises:
		ImageDecodeFailure: If the handle cannot be decoded.
	"""
	image = decode_image(layer)
	if image.size == (box_width, box_height):
		return image
	return image.resize((box_width, box_height), PIL.Image.Resampling.LANCZOS)


#============================================
def apply_opacity(tile: PIL.Image.Image, opacity: float) -> PIL.Image.Image:
	"""
	Scale a tile's alpha channel by the layer opacity.
	"""
	if opacity >= 1.0:
		return tile
	alpha = tile.getchannel("A").point(lambda value: int(round(value * opacity)))
	tile.putalpha(alpha)
	return tile


#============================================
def rotate_about_box_center(
	tile: PIL.Image.Image,
	box_width: int,
	box_height: int,
	rotation: float,
) -> tuple[PIL.Image.Image, float, float]:
	"""
	Rotate a tile about the center of the layer box it was drawn for.

	Args:
		tile: RGBA tile whose origin is the layer box's top-left corner.
		box_width: Layer box width in pixels.
		box_height: Layer box height in pixels.
		rotation: Clockwise degrees.

	Returns:
		Tuple of (rotated tile, offset x, offset y) where the offsets
		place the rotated tile relative to the box's top-left corner.
	"""
	center_x = box_width / 2.0
	center_y = box_height / 2.0
	# pad so the box center becomes the tile center
	half_width = max(center_x, tile.width - center_x)
	half_height = max(center_y, tile.height - center_y)
	padded = PIL.Image.new(
		"RGBA",
		(max(1, int(math.ceil(2.0 * half_width))), max(1, int(math.ceil(2.0 * half_height)))),
		(0, 0, 0, 0),
	)
	padded.paste(tile, (int(round(half_width - center_x)), int(round(half_height - center_y))))
	rotated = padded.rotate(-rotation, resample=PIL.Image.Resampling.BICUBIC, expand=True)
	offset_x = center_x - rotated.width / 2.0
	offset_y = center_y - rotated.height / 2.0
	return (rotated, offset_x, offset_y)


#============================================
def composite_clipped(surface: PIL.Image.Image, tile: PIL.Image.Image, left: int, top: int) -> None:
	"""
	Alpha blend a tile onto the surface, clipping to the surface bounds.

	Args:
		surface: RGBA surface, modified in place.
		tile: RGBA tile.
		left: Tile left edge on the surface, may be negative.
		top: Tile top edge on the surface, may be negative.
	"""
	source_left = max(0, -left)
	source_top = max(0, -top)
	source_right = min(tile.width, surface.width - left)
	source_bottom = min(tile.height, surface.height - top)
	if source_right <= source_left or source_bottom <= source_top:
		return
	surface.alpha_composite(
		tile,
		dest=(left + source_left, top + source_top),
		source=(source_left, source_top, source_right, source_bottom),
	)


#============================================
def draw_layer(surface: PIL.Image.Image, layer: Layer) -> None:
	"""
	Draw one layer onto the surface.

	Args:
		surface: RGBA surface, modified in place.
		layer: Layer to draw.

	Raises:
		ImageDecodeFailure: If an image layer cannot be decoded.
	"""
	opacity = min(1.0, max(0.0, float(layer.opacity)))
	if opacity <= 0.0:
		return
	left, top, box_width, box_height = pixel_box(layer, surface.width, surface.height)
	if layer.kind == KIND_IMAGE:
		if box_width <= 0 or box_height <= 0:
			return
		tile = render_image_tile(layer, box_width, box_height)
	elif layer.kind == KIND_TEXT:
		tile = render_text_tile(layer, box_width, box_height, surface.height)
	else:
		return
	tile = apply_opacity(tile, opacity)

	if layer.rotation % 360.0 == 0.0:
		composite_clipped(surface, tile, left, top)
		return
	rotated, offset_x, offset_y = rotate_about_box_center(tile, box_width, box_height, layer.rotation)
	composite_clipped(surface, rotated, int(round(left + offset_x)), int(round(top + offset_y)))


#============================================
def composite_poster(
	layout: LayoutResult,
	layers: list[Layer],
	scale: float,
	verbose: bool = False,
) -> CompositeResult:
	"""
	Composite all layers, in paint order, onto one poster surface.

	Image layers that fail to decode are skipped and recorded; they never
	abort the composite.

	Args:
		layout: Resolved layout.
		layers: Layers in paint order.
		scale: Pixels per physical unit.
		verbose: Print skipped layers.

	Returns:
		CompositeResult with the RGBA surface.
	"""
	surface = PIL.Image.new("RGBA", surface_size(layout, scale), BACKGROUND_COLOR)
	result = CompositeResult(surface=surface, scale=scale)
	for layer in layers:
		try:
			draw_layer(surface, layer)
		except ImageDecodeFailure as error:
			result.skipped_layers.append(layer.layer_id)
			if verbose:
				print(f"Skipping image {error}")
	return result


#============================================
def draw_grid_overlay(image: PIL.Image.Image, layout: LayoutResult, scale: float) -> None:
	"""
	Draw page boundary lines over a preview image.
	"""
	overlay = PIL.Image.new("RGBA", image.size, (0, 0, 0, 0))
	draw = PIL.ImageDraw.Draw(overlay)
	col_edges, row_edges = tpm.layout.compute_page_boundaries(layout)
	for edge in col_edges:
		x = min(image.width - 1, int(round(edge * scale)))
		draw.line((x, 0, x, image.height - 1), fill=GRID_OVERLAY_COLOR, width=1)
	for edge in row_edges:
		y = min(image.height - 1, int(round(edge * scale)))
		draw.line((0, y, image.width - 1, y), fill=GRID_OVERLAY_COLOR, width=1)
	image.alpha_composite(overlay)


#============================================
def render_preview(
	layout: LayoutResult,
	layers: list[Layer],
	zoom: float = 1.0,
	draw_grid: bool = True,
) -> PIL.Image.Image:
	"""
	Render the editor view of the poster at display scale.

	Uses the same fractional mapping as the export so the preview
	matches the printed result.

	Args:
		layout: Resolved layout.
		layers: Layers in paint order.
		zoom: Editor zoom factor.
		draw_grid: Overlay page boundaries.

	Returns:
		RGBA preview image.
	"""
	scale = DISPLAY_SCALE_BY_UNIT[layout.unit] * zoom
	result = composite_poster(layout, layers, scale)
	if draw_grid:
		draw_grid_overlay(result.surface, layout, scale)
	return result.surface
