import io

import PIL.Image
import pytest

import tarp_poster_maker.compose
import tarp_poster_maker.config
import tarp_poster_maker.errors
import tarp_poster_maker.layers
import tarp_poster_maker.layout
import tarp_poster_maker.tiler

config_module = tarp_poster_maker.config
tiler = tarp_poster_maker.tiler

# keeps the raster small; one pixel per tenth of an inch
TEST_SCALE = 10.0


#============================================
def _poster_36x48(**changes) -> config_module.PosterConfig:
	fields = {
		"mode": "size",
		"unit": "in",
		"target_width": 36.0,
		"target_height": 48.0,
		"paper_id": "letter",
		"margin": 0.5,
	}
	fields.update(changes)
	return config_module.PosterConfig(**fields)


#============================================
def test_plan_tiles_partitions_surface() -> None:
	"""
	Neighbouring tiles share pixel edges and cover the surface.
	"""
	configs = [
		_poster_36x48(),
		config_module.PosterConfig(mode="grid", unit="mm", grid_rows=2, grid_cols=3, paper_id="letter", margin=5.0),
		config_module.PosterConfig(mode="size", unit="mm", target_width=1000.0, target_height=707.0, paper_id="a4", orientation="landscape", margin=7.0),
	]
	for config in configs:
		layout = tarp_poster_maker.layout.resolve_layout(config)
		for scale in (1.0, 3.3, 5.0, 10.0):
			plans = tiler.plan_tiles(layout, scale)
			assert len(plans) == layout.rows * layout.cols
			width, height = tarp_poster_maker.compose.surface_size(layout, scale)
			for index, plan in enumerate(plans):
				assert (plan.row, plan.col) == divmod(index, layout.cols)
				if plan.col == 0:
					assert plan.left == 0
				else:
					assert plan.left == plans[index - 1].right
				if plan.row == 0:
					assert plan.top == 0
				else:
					assert plan.top == plans[index - layout.cols].bottom
				if plan.col == layout.cols - 1:
					assert width - 1 <= plan.right <= width
				if plan.row == layout.rows - 1:
					assert height - 1 <= plan.bottom <= height


#============================================
def test_last_column_is_partial_tile() -> None:
	"""
	A 36 inch poster ends with a 6 inch wide column.
	"""
	layout = tarp_poster_maker.layout.resolve_layout(_poster_36x48())
	plans = tiler.plan_tiles(layout, 120.0)
	last = plans[layout.cols - 1]
	assert last.width == pytest.approx(6.0)
	assert last.height == pytest.approx(10.0)
	assert last.left == 3600
	assert last.pixel_width == 720
	bottom_row = plans[-1]
	assert bottom_row.height == pytest.approx(8.0)
	assert bottom_row.pixel_height == 960
	assert plans[0].width == pytest.approx(7.5)
	assert plans[0].pixel_width == 900


#============================================
def test_export_emits_pages_in_row_major_order(recording_sink) -> None:
	"""
	Pages go out left to right, top to bottom, with matching labels.
	"""
	result = tiler.export_poster(_poster_36x48(), [], recording_sink, "poster.pdf", scale=TEST_SCALE)
	assert result.pages == 25
	assert (result.rows, result.cols) == (5, 5)
	assert result.surface_size == (360, 480)
	assert result.blank_tiles == 0
	assert recording_sink.calls[0] == ("new_document", "in", "portrait")
	assert recording_sink.calls[-1] == ("save", "poster.pdf")

	labels = [call[1] for call in recording_sink.named("draw_text")]
	expected = [
		f"Page {row}-{col} (Row {row}, Col {col})"
		for row in range(1, 6)
		for col in range(1, 6)
	]
	assert labels == expected
	pages = recording_sink.pages()
	assert len(pages) == 25
	for page in pages:
		assert page[0][0] == "add_page"
		assert page[0][1] == pytest.approx(8.5)
		assert page[0][2] == pytest.approx(11.0)


#============================================
def test_page_contents_and_guides(recording_sink) -> None:
	"""
	Each page holds its tile at the margin, cut guides and a label.
	"""
	tiler.export_poster(_poster_36x48(), [], recording_sink, scale=TEST_SCALE)
	pages = recording_sink.pages()

	last_in_first_row = pages[4]
	names = [call[0] for call in last_in_first_row]
	assert names == [
		"add_page",
		"draw_image",
		"set_line_style",
		"draw_rect",
		"set_line_style",
	] + ["draw_line"] * 8 + ["draw_text"]

	_name, data, x, y, width, height = last_in_first_row[1]
	assert (x, y) == (0.5, 0.5)
	assert width == pytest.approx(6.0)
	assert height == pytest.approx(10.0)
	tile = PIL.Image.open(io.BytesIO(data))
	assert tile.format == "JPEG"
	assert tile.size == (60, 100)

	assert last_in_first_row[2] == ("set_line_style", 0.01, (150, 150, 150), [0.1, 0.1])
	_name, rect_x, rect_y, rect_width, rect_height = last_in_first_row[3]
	assert (rect_x, rect_y) == (0.5, 0.5)
	assert rect_width == pytest.approx(6.0)
	assert rect_height == pytest.approx(10.0)
	assert last_in_first_row[4] == ("set_line_style", 0.01, (0, 0, 0), [])

	text_call = last_in_first_row[-1]
	assert text_call[2] == pytest.approx(0.2)
	assert text_call[3] == pytest.approx(10.8)
	assert text_call[4] == 10.0


#============================================
def test_scissor_marks_touch_each_corner(recording_sink) -> None:
	"""
	Every corner of the printable area gets a pair of marks.
	"""
	config = _poster_36x48()
	tiler.draw_cut_guides(recording_sink, config, 0.5, 0.5, 7.5, 10.0)
	lines = recording_sink.named("draw_line")
	assert len(lines) == 8
	corners = {(0.5, 0.5), (8.0, 0.5), (0.5, 10.5), (8.0, 10.5)}
	touched = set()
	for _name, x1, y1, x2, y2 in lines:
		for corner in corners:
			on_horizontal = y1 == y2 == corner[1] and min(x1, x2) <= corner[0] <= max(x1, x2)
			on_vertical = x1 == x2 == corner[0] and min(y1, y2) <= corner[1] <= max(y1, y2)
			if on_horizontal or on_vertical:
				touched.add(corner)
	assert touched == corners


#============================================
def test_guides_and_labels_can_be_disabled(recording_sink) -> None:
	"""
	Disabled cut lines and page numbers draw nothing extra.
	"""
	config = _poster_36x48(show_cut_lines=False, show_page_numbers=False)
	tiler.export_poster(config, [], recording_sink, scale=TEST_SCALE)
	assert recording_sink.named("draw_rect") == []
	assert recording_sink.named("draw_line") == []
	assert recording_sink.named("draw_text") == []
	assert len(recording_sink.named("draw_image")) == 25


#============================================
def test_cut_style_none_and_solid(recording_sink) -> None:
	config = _poster_36x48(cut_line_style="none")
	tiler.export_poster(config, [], recording_sink, scale=TEST_SCALE)
	assert recording_sink.named("draw_rect") == []

	solid_sink = type(recording_sink)()
	tiler.export_poster(_poster_36x48(cut_line_style="solid"), [], solid_sink, scale=TEST_SCALE)
	styles = solid_sink.named("set_line_style")
	assert styles[0] == ("set_line_style", 0.01, (150, 150, 150), [])


#============================================
def test_degenerate_tile_gets_guides_without_image(recording_sink) -> None:
	"""
	A zero pixel tile still gets a page with guides and a label.
	"""
	config = _poster_36x48()
	layout = tarp_poster_maker.layout.resolve_layout(config)
	plan = config_module.TilePlan(row=0, col=5, left=360, top=0, right=360, bottom=100, width=0.0, height=10.0)
	surface = PIL.Image.new("RGBA", (360, 480), (255, 255, 255, 255))
	has_image = tiler.emit_tile_page(recording_sink, config, layout, plan, surface)
	assert not has_image
	assert recording_sink.named("draw_image") == []
	_name, x, y, width, height = recording_sink.named("draw_rect")[0]
	assert width == pytest.approx(layout.printable_width)
	assert height == pytest.approx(layout.printable_height)
	assert recording_sink.named("draw_text")[0][1] == "Page 1-6 (Row 1, Col 6)"


#============================================
def test_invalid_margin_fails_before_sink(recording_sink) -> None:
	"""
	Config errors surface before any page is emitted.
	"""
	with pytest.raises(tarp_poster_maker.errors.InvalidMarginError):
		tiler.export_poster(_poster_36x48(margin=6.0), [], recording_sink, scale=TEST_SCALE)
	assert recording_sink.calls == []

	with pytest.raises(tarp_poster_maker.errors.InvalidConfigError):
		tiler.export_poster(_poster_36x48(), [], recording_sink, scale=0.0)
	assert recording_sink.calls == []


#============================================
def test_tiles_carry_layer_pixels(recording_sink) -> None:
	"""
	A layer on the bottom-right page shows up only in that page's tile.
	"""
	config = config_module.PosterConfig(mode="grid", unit="in", grid_rows=2, grid_cols=2, paper_id="letter", margin=0.5)
	red = PIL.Image.new("RGB", (4, 4), (255, 0, 0))
	layer = tarp_poster_maker.layers.Layer(
		layer_id="red", kind="image", content=red, x=0.5, y=0.5, width=0.5, height=0.5,
	)
	broken = tarp_poster_maker.layers.Layer(
		layer_id="broken", kind="image", content=b"xx", x=0.0, y=0.0, width=0.1, height=0.1,
	)
	result = tiler.export_poster(config, [layer, broken], recording_sink, scale=TEST_SCALE)
	assert result.skipped_layers == ["broken"]
	images = [PIL.Image.open(io.BytesIO(call[1])).convert("RGB") for call in recording_sink.named("draw_image")]
	assert len(images) == 4
	first_pixel = images[0].getpixel((37, 50))
	last_pixel = images[3].getpixel((37, 50))
	assert min(first_pixel) > 240
	assert last_pixel[0] > 200
	assert last_pixel[1] < 60
	assert last_pixel[2] < 60


#============================================
def test_page_label_format() -> None:
	assert tiler.page_label(0, 0) == "Page 1-1 (Row 1, Col 1)"
	assert tiler.page_label(2, 4) == "Page 3-5 (Row 3, Col 5)"
