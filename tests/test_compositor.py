import base64
import io

import PIL.Image
import pytest

import tarp_poster_maker.compose
import tarp_poster_maker.config
import tarp_poster_maker.errors
import tarp_poster_maker.layers
import tarp_poster_maker.paper

compose = tarp_poster_maker.compose
layers = tarp_poster_maker.layers

RED = (255, 0, 0)
BLUE = (0, 0, 255)
WHITE = (255, 255, 255)


#============================================
def _layout(width: float = 100.0, height: float = 50.0) -> tarp_poster_maker.config.LayoutResult:
	"""
	One page layout in millimeters with no margin.
	"""
	return tarp_poster_maker.config.LayoutResult(
		poster_width=width,
		poster_height=height,
		cols=1,
		rows=1,
		printable_width=width,
		printable_height=height,
		page_width=width,
		page_height=height,
		margin=0.0,
		unit="mm",
	)


#============================================
def _solid_image(color: tuple[int, int, int], size: tuple[int, int] = (10, 10)) -> PIL.Image.Image:
	return PIL.Image.new("RGB", size, color)


#============================================
def _image_layer(layer_id: str, content: object, x: float, y: float, width: float, height: float, **changes) -> layers.Layer:
	return layers.Layer(
		layer_id=layer_id,
		kind=layers.KIND_IMAGE,
		content=content,
		x=x,
		y=y,
		width=width,
		height=height,
		**changes,
	)


#============================================
def _rgb(surface: PIL.Image.Image, x: int, y: int) -> tuple[int, int, int]:
	return surface.getpixel((x, y))[:3]


#============================================
def test_surface_size_uses_scale() -> None:
	"""
	Surface size is poster size times pixels per unit.
	"""
	assert compose.surface_size(_layout(100.0, 50.0), 5.0) == (500, 250)
	assert compose.surface_size(_layout(22.5, 30.0), 120.0) == (2700, 3600)
	assert compose.surface_size(_layout(0.001, 0.001), 1.0) == (1, 1)


#============================================
def test_text_metrics_follow_surface_height() -> None:
	"""
	Font size is 5% of surface height; lines are 1.2 font sizes apart.
	"""
	layer = layers.create_layer(layers.KIND_TEXT, "Hello\nWorld")
	font_size, lines, offsets = compose.compute_text_metrics(layer, 1000)
	assert font_size == pytest.approx(50.0)
	assert lines == ["Hello", "World"]
	assert offsets == pytest.approx([0.0, 60.0])

	layer.style.font_size = 2.0
	font_size, _lines, offsets = compose.compute_text_metrics(layer, 1000)
	assert font_size == pytest.approx(100.0)
	assert offsets[1] == pytest.approx(120.0)


#============================================
def test_image_layer_stretches_to_fill_box() -> None:
	"""
	Image layers fill their box exactly, ignoring aspect ratio.
	"""
	layer = _image_layer("red", _solid_image(RED), 0.1, 0.2, 0.5, 0.4)
	result = compose.composite_poster(_layout(), [layer], 1.0)
	surface = result.surface
	assert surface.size == (100, 50)
	assert surface.mode == "RGBA"
	# box is x 10..60, y 10..30
	assert _rgb(surface, 10, 10) == RED
	assert _rgb(surface, 59, 29) == RED
	assert _rgb(surface, 35, 20) == RED
	assert _rgb(surface, 9, 10) == WHITE
	assert _rgb(surface, 60, 29) == WHITE
	assert _rgb(surface, 35, 30) == WHITE
	assert result.skipped_layers == []


#============================================
def test_later_layers_paint_on_top() -> None:
	"""
	Paint order follows the layer list.
	"""
	bottom = _image_layer("red", _solid_image(RED), 0.0, 0.0, 0.6, 1.0)
	top = _image_layer("blue", _solid_image(BLUE), 0.4, 0.0, 0.6, 1.0)
	surface = compose.composite_poster(_layout(), [bottom, top], 1.0).surface
	assert _rgb(surface, 50, 25) == BLUE
	assert _rgb(surface, 20, 25) == RED
	assert _rgb(surface, 80, 25) == BLUE


#============================================
def test_opacity_blends_with_background() -> None:
	"""
	Half opacity red over white gives a pink pixel.
	"""
	layer = _image_layer("red", _solid_image(RED), 0.0, 0.0, 1.0, 1.0, opacity=0.5)
	surface = compose.composite_poster(_layout(), [layer], 1.0).surface
	red, green, blue = _rgb(surface, 50, 25)
	assert red >= 253
	assert abs(green - 127) <= 2
	assert abs(blue - 127) <= 2


#============================================
def test_zero_opacity_draws_nothing() -> None:
	layer = _image_layer("red", _solid_image(RED), 0.0, 0.0, 1.0, 1.0, opacity=0.0)
	surface = compose.composite_poster(_layout(), [layer], 1.0).surface
	assert _rgb(surface, 50, 25) == WHITE


#============================================
def test_rotation_is_about_box_center() -> None:
	"""
	A quarter turn swaps the box extents around its center.
	"""
	# box is x 30..70, y 20..30, centered at (50, 25)
	layer = _image_layer("red", _solid_image(RED), 0.3, 0.4, 0.4, 0.2, rotation=90.0)
	surface = compose.composite_poster(_layout(), [layer], 1.0).surface
	assert _rgb(surface, 50, 25) == RED
	assert _rgb(surface, 50, 8) == RED
	assert _rgb(surface, 50, 42) == RED
	assert _rgb(surface, 33, 25) == WHITE
	assert _rgb(surface, 67, 25) == WHITE


#============================================
def test_offsurface_layer_is_clipped() -> None:
	"""
	Layers hanging off the poster edge are clipped, not rejected.
	"""
	layer = _image_layer("red", _solid_image(RED), -0.5, -0.5, 1.0, 1.0)
	surface = compose.composite_poster(_layout(), [layer], 1.0).surface
	assert _rgb(surface, 0, 0) == RED
	assert _rgb(surface, 49, 24) == RED
	assert _rgb(surface, 50, 25) == WHITE


#============================================
def test_decode_failure_skips_layer() -> None:
	"""
	Undecodable images are skipped and the rest still renders.
	"""
	broken = _image_layer("broken", b"not an image", 0.0, 0.0, 1.0, 1.0)
	missing = _image_layer("missing", None, 0.0, 0.0, 1.0, 1.0)
	good = _image_layer("good", _solid_image(BLUE), 0.0, 0.0, 0.5, 1.0)
	result = compose.composite_poster(_layout(), [broken, good, missing], 1.0)
	assert result.skipped_layers == ["broken", "missing"]
	assert _rgb(result.surface, 10, 25) == BLUE
	assert _rgb(result.surface, 90, 25) == WHITE


#============================================
def test_decode_image_accepts_data_url_and_bytes() -> None:
	"""
	Encoded bytes, data URLs and bare base64 all decode.
	"""
	buffer = io.BytesIO()
	_solid_image(RED, (4, 3)).save(buffer, format="PNG")
	data = buffer.getvalue()
	encoded = base64.b64encode(data).decode("ascii")
	for content in (data, f"data:image/png;base64,{encoded}", encoded):
		image = compose.decode_image(_image_layer("x", content, 0.0, 0.0, 1.0, 1.0))
		assert image.size == (4, 3)
		assert image.mode == "RGBA"
	with pytest.raises(tarp_poster_maker.errors.ImageDecodeFailure):
		compose.decode_image(_image_layer("x", "data:image/png,rawtext", 0.0, 0.0, 1.0, 1.0))


#============================================
def test_text_layer_draws_dark_pixels() -> None:
	"""
	Text layers render glyphs at the layer's top-left corner.
	"""
	layer = layers.create_layer(layers.KIND_TEXT, "HHHH")
	layer.x = 0.1
	layer.y = 0.1
	surface = compose.composite_poster(_layout(400.0, 200.0), [layer], 1.0).surface
	region = surface.crop((40, 20, 200, 60)).convert("L")
	assert min(region.getdata()) < 128
	# nothing above the layer
	above = surface.crop((0, 0, 400, 15)).convert("L")
	assert min(above.getdata()) == 255


#============================================
def test_text_background_fills_box() -> None:
	layer = layers.create_layer(layers.KIND_TEXT, "")
	layer.style.background_color = "#0000ff"
	surface = compose.composite_poster(_layout(), [layer], 1.0).surface
	# default box is x 25..75, y 12.5..22.5
	assert _rgb(surface, 50, 17) == BLUE
	assert _rgb(surface, 50, 40) == WHITE


#============================================
def test_preview_matches_export_mapping() -> None:
	"""
	The preview uses display scale and the same fractional mapping.
	"""
	layout = _layout(200.0, 100.0)
	layer = _image_layer("red", _solid_image(RED), 0.5, 0.5, 0.5, 0.5)
	preview = compose.render_preview(layout, [layer], zoom=0.5, draw_grid=False)
	assert preview.size == (100, 50)
	assert _rgb(preview, 75, 37) == RED
	assert _rgb(preview, 25, 12) == WHITE


#============================================
def test_parse_color_falls_back() -> None:
	assert compose.parse_color("#ef4444") == (239, 68, 68, 255)
	assert compose.parse_color("not-a-color") == (0, 0, 0, 255)
	assert compose.parse_color(None, "#ffffff") == (255, 255, 255, 255)


#============================================
def test_oversized_image_is_skipped(monkeypatch) -> None:
	"""
	Images Pillow refuses as too large are skipped like broken ones.
	"""
	buffer = io.BytesIO()
	_solid_image(RED, (40, 40)).save(buffer, format="PNG")
	monkeypatch.setattr(PIL.Image, "MAX_IMAGE_PIXELS", 100)
	huge = _image_layer("huge", buffer.getvalue(), 0.0, 0.0, 1.0, 1.0)
	good = _image_layer("good", _solid_image(BLUE), 0.0, 0.0, 0.5, 1.0)
	result = compose.composite_poster(_layout(), [huge, good], 1.0)
	assert result.skipped_layers == ["huge"]
	assert _rgb(result.surface, 10, 25) == BLUE
	assert _rgb(result.surface, 90, 25) == WHITE


#============================================
def test_palette_colors_parse() -> None:
	for color in tarp_poster_maker.paper.COLORS:
		assert compose.parse_color(color)[3] == 255


#============================================
def test_font_candidates_follow_palette_class() -> None:
	"""
	Palette fonts pick fallbacks of their class and keep palette spelling.
	"""
	candidates = compose._font_candidates("georgia", "normal")
	assert candidates[0] == "Georgia.ttf"
	assert candidates[1:] == compose.FONT_FILES[("serif", False)]

	candidates = compose._font_candidates("Courier New", "700")
	assert candidates[0] == "Courier New Bold.ttf"
	assert candidates[1:] == compose.FONT_FILES[("mono", True)]

	candidates = compose._font_candidates("Comic Neue", "bold")
	assert candidates[1:] == compose.FONT_FILES[("sans", True)]
	assert compose._font_candidates("", "normal") == compose.FONT_FILES[("sans", False)]

	for family in tarp_poster_maker.paper.FONTS:
		for weight in ("normal", "bold"):
			font = compose.load_font(family, weight, 12)
			assert font is not None
