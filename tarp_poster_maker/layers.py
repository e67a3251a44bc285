"""
Layer model and fractional coordinate math for move, resize and hit tests.
"""

# Standard Library
import dataclasses
import uuid

# local repo modules
import tarp_poster_maker as tpm
import tarp_poster_maker.config


MIN_LAYER_SIZE = tpm.config.MIN_LAYER_SIZE
DEFAULT_LAYER_X = tpm.config.DEFAULT_LAYER_X
DEFAULT_LAYER_Y = tpm.config.DEFAULT_LAYER_Y
DEFAULT_LAYER_WIDTH = tpm.config.DEFAULT_LAYER_WIDTH
DEFAULT_IMAGE_HEIGHT = tpm.config.DEFAULT_IMAGE_HEIGHT
DEFAULT_TEXT_HEIGHT = tpm.config.DEFAULT_TEXT_HEIGHT
DEFAULT_TEXT_COLOR = tpm.config.DEFAULT_TEXT_COLOR
DEFAULT_FONT_FAMILY = tpm.config.DEFAULT_FONT_FAMILY
DEFAULT_FONT_WEIGHT = tpm.config.DEFAULT_FONT_WEIGHT

KIND_IMAGE = "image"
KIND_TEXT = "text"
LAYER_KINDS = (KIND_IMAGE, KIND_TEXT)

HANDLE_NW = "nw"
HANDLE_NE = "ne"
HANDLE_SW = "sw"
HANDLE_SE = "se"
HANDLES = (HANDLE_NW, HANDLE_NE, HANDLE_SW, HANDLE_SE)

MODE_IDLE = "idle"
MODE_MOVING = "moving"
MODE_RESIZING = "resizing"


@dataclasses.dataclass
class LayerStyle:
	color: str = DEFAULT_TEXT_COLOR
	font_size: float = 1.0
	font_family: str = DEFAULT_FONT_FAMILY
	font_weight: str = DEFAULT_FONT_WEIGHT
	background_color: str | None = None


@dataclasses.dataclass
class Layer:
	layer_id: str
	kind: str
	content: object
	x: float
	y: float
	width: float
	height: float
	rotation: float = 0.0
	opacity: float = 1.0
	style: LayerStyle | None = None


#============================================
def create_layer(kind: str, content: object) -> Layer:
	"""
	Create a layer with the default placement for its kind.

	Args:
		kind: "image" or "text".
		content: Image handle or raw text.

	Returns:
		New Layer with a fresh id.
	"""
	if kind not in LAYER_KINDS:
		raise ValueError(f"unknown layer kind {kind!r}")
	style = None
	height = DEFAULT_IMAGE_HEIGHT
	if kind == KIND_TEXT:
		style = LayerStyle()
		height = DEFAULT_TEXT_HEIGHT
	return Layer(
		layer_id=uuid.uuid4().hex,
		kind=kind,
		content=content,
		x=DEFAULT_LAYER_X,
		y=DEFAULT_LAYER_Y,
		width=DEFAULT_LAYER_WIDTH,
		height=height,
		style=style,
	)


#============================================
def layer_rect(layer: Layer, surface_width: float, surface_height: float) -> tuple[float, float, float, float]:
	"""
	Map a layer's fractional bounds onto a surface.

	Args:
		layer: Layer.
		surface_width: Surface width in pixels.
		surface_height: Surface height in pixels.

	Returns:
		Tuple of (x, y, width, height) in surface pixels.
	"""
	return (
		layer.x * surface_width,
		layer.y * surface_height,
		layer.width * surface_width,
		layer.height * surface_height,
	)


#============================================
def move_layer(
	start_layer: Layer,
	delta_x: float,
	delta_y: float,
	surface_width: float,
	surface_height: float,
) -> Layer:
	"""
	Move a layer by a total pointer delta since the gesture started.

	Args:
		start_layer: Layer snapshot taken at gesture start.
		delta_x: Total horizontal delta in logical pixels at 1:1 zoom.
		delta_y: Total vertical delta in logical pixels at 1:1 zoom.
		surface_width: Logical poster width in pixels.
		surface_height: Logical poster height in pixels.

	Returns:
		New Layer at the moved position.
	"""
	return dataclasses.replace(
		start_layer,
		x=start_layer.x + delta_x / surface_width,
		y=start_layer.y + delta_y / surface_height,
	)


#============================================
def _drag_far_edge(start: float, size: float, delta: float) -> tuple[float, float]:
	# the near edge stays put, only the size follows the pointer
	return (start, max(MIN_LAYER_SIZE, size + delta))


#============================================
def _drag_near_edge(start: float, size: float, delta: float) -> tuple[float, float]:
	proposed = size - delta
	if proposed < MIN_LAYER_SIZE:
		return (start + size - MIN_LAYER_SIZE, MIN_LAYER_SIZE)
	return (start + delta, proposed)


#============================================
def resize_layer(
	start_layer: Layer,
	handle: str,
	delta_x: float,
	delta_y: float,
	surface_width: float,
	surface_height: float,
) -> Layer:
	"""
	Resize a layer by dragging one corner handle.

	The opposite corner stays fixed and each axis is floored at
	MIN_LAYER_SIZE. Handles work in the unrotated layer frame.

	Args:
		start_layer: Layer snapshot taken at gesture start.
		handle: One of "nw", "ne", "sw", "se".
		delta_x: Total horizontal delta in logical pixels at 1:1 zoom.
		delta_y: Total vertical delta in logical pixels at 1:1 zoom.
		surface_width: Logical poster width in pixels.
		surface_height: Logical poster height in pixels.

	Returns:
		New resized Layer.
	"""
	if handle not in HANDLES:
		raise ValueError(f"unknown resize handle {handle!r}")
	frac_x = delta_x / surface_width
	frac_y = delta_y / surface_height

	if handle in (HANDLE_NW, HANDLE_SW):
		new_x, new_width = _drag_near_edge(start_layer.x, start_layer.width, frac_x)
	else:
		new_x, new_width = _drag_far_edge(start_layer.x, start_layer.width, frac_x)
	if handle in (HANDLE_NW, HANDLE_NE):
		new_y, new_height = _drag_near_edge(start_layer.y, start_layer.height, frac_y)
	else:
		new_y, new_height = _drag_far_edge(start_layer.y, start_layer.height, frac_y)

	return dataclasses.replace(
		start_layer,
		x=new_x,
		y=new_y,
		width=new_width,
		height=new_height,
	)


#============================================
def contains_point(layer: Layer, x: float, y: float) -> bool:
	"""
	Check whether a fractional point lies inside the layer's unrotated box.
	"""
	return (
		layer.x <= x <= layer.x + layer.width
		and layer.y <= y <= layer.y + layer.height
	)


#============================================
def hit_test(layers: list[Layer], x: float, y: float) -> Layer | None:
	"""
	Find the topmost layer at a fractional poster point.

	Args:
		layers: Layers in paint order.
		x: Fractional x.
		y: Fractional y.

	Returns:
		Last layer in paint order containing the point, or None.
	"""
	for layer in reversed(layers):
		if contains_point(layer, x, y):
			return layer
	return None


class InteractionState:
	"""
	Pointer gesture state: idle, moving or resizing.

	Every update recomputes the layer from the snapshot taken at
	gesture start plus the total pointer delta, so dropped or
	repeated pointer events cannot accumulate error.
	"""

	def __init__(self):
		self.mode = MODE_IDLE
		self.handle: str | None = None
		self.start_pointer = (0.0, 0.0)
		self.start_layer: Layer | None = None

	@property
	def active(self) -> bool:
		return self.mode != MODE_IDLE and self.start_layer is not None

	def begin_move(self, layer: Layer, pointer_x: float, pointer_y: float) -> None:
		self.mode = MODE_MOVING
		self.handle = None
		self.start_pointer = (pointer_x, pointer_y)
		self.start_layer = dataclasses.replace(layer)

	def begin_resize(self, layer: Layer, handle: str, pointer_x: float, pointer_y: float) -> None:
		if handle not in HANDLES:
			raise ValueError(f"unknown resize handle {handle!r}")
		self.mode = MODE_RESIZING
		self.handle = handle
		self.start_pointer = (pointer_x, pointer_y)
		self.start_layer = dataclasses.replace(layer)

	def update(
		self,
		pointer_x: float,
		pointer_y: float,
		zoom: float,
		surface_width: float,
		surface_height: float,
	) -> Layer | None:
		"""
		Compute the layer for the current pointer position.

		Args:
			pointer_x: Screen pointer x.
			pointer_y: Screen pointer y.
			zoom: Current zoom factor.
			surface_width: Logical poster width at zoom 1.0.
			surface_height: Logical poster height at zoom 1.0.

		Returns:
			Updated Layer, or None when no gesture is active.
		"""
		if not self.active:
			return None
		delta_x = (pointer_x - self.start_pointer[0]) / zoom
		delta_y = (pointer_y - self.start_pointer[1]) / zoom
		if self.mode == MODE_MOVING:
			return move_layer(self.start_layer, delta_x, delta_y, surface_width, surface_height)
		return resize_layer(
			self.start_layer,
			self.handle,
			delta_x,
			delta_y,
			surface_width,
			surface_height,
		)

	def end(self) -> None:
		self.mode = MODE_IDLE
		self.handle = None
		self.start_pointer = (0.0, 0.0)
		self.start_layer = None
