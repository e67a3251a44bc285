"""
Editing session: owns the poster config, the layer stack and pointer gestures.
"""

# Standard Library
import dataclasses
import threading

# local repo modules
import tarp_poster_maker as tpm
import tarp_poster_maker.config
import tarp_poster_maker.errors
import tarp_poster_maker.layers
import tarp_poster_maker.layout
import tarp_poster_maker.paper
import tarp_poster_maker.tiler


PosterConfig = tpm.config.PosterConfig
LayoutResult = tpm.config.LayoutResult
ExportResult = tpm.config.ExportResult
Layer = tpm.layers.Layer
InteractionState = tpm.layers.InteractionState
ExportInProgressError = tpm.errors.ExportInProgressError

UNIT_MM = tpm.config.UNIT_MM
UNIT_INCH = tpm.config.UNIT_INCH
DISPLAY_SCALE_BY_UNIT = tpm.config.DISPLAY_SCALE_BY_UNIT
DEFAULT_OUTPUT_NAME = tpm.config.DEFAULT_OUTPUT_NAME
DEFAULT_TEXT_CONTENT = tpm.config.DEFAULT_TEXT_CONTENT
DEFAULT_ZOOM = tpm.config.DEFAULT_ZOOM
ZOOM_MIN = tpm.config.ZOOM_MIN
ZOOM_MAX = tpm.config.ZOOM_MAX
ZOOM_STEP = tpm.config.ZOOM_STEP


class EditorSession:
	"""
	Single editing session over one poster.

	Layers are kept in paint order: later layers draw on top.
	"""

	def __init__(self, config: PosterConfig | None = None, layers: list[Layer] | None = None):
		self.config = config if config is not None else PosterConfig()
		self.layers: list[Layer] = list(layers or [])
		self.selected_layer_id: str | None = None
		self.zoom = DEFAULT_ZOOM
		self.interaction = InteractionState()
		self._export_lock = threading.Lock()

	#============================================
	# layers

	def get_layer(self, layer_id: str) -> Layer | None:
		for layer in self.layers:
			if layer.layer_id == layer_id:
				return layer
		return None

	def _index_of(self, layer_id: str) -> int:
		for index, layer in enumerate(self.layers):
			if layer.layer_id == layer_id:
				return index
		raise KeyError(layer_id)

	def add_layer(self, layer: Layer) -> Layer:
		self.layers.append(layer)
		self.selected_layer_id = layer.layer_id
		return layer

	def add_image_layer(self, content: object) -> Layer:
		return self.add_layer(tpm.layers.create_layer(tpm.layers.KIND_IMAGE, content))

	def add_text_layer(self, text: str = DEFAULT_TEXT_CONTENT) -> Layer:
		return self.add_layer(tpm.layers.create_layer(tpm.layers.KIND_TEXT, text))

	def update_layer(self, layer_id: str, **changes) -> Layer:
		"""
		Replace fields of a layer in place in the stack.

		Args:
			layer_id: Layer id.
			**changes: Layer fields to change.

		Returns:
			Updated Layer.
		"""
		index = self._index_of(layer_id)
		updated = dataclasses.replace(self.layers[index], **changes)
		self.layers[index] = updated
		return updated

	def remove_layer(self, layer_id: str) -> None:
		index = self._index_of(layer_id)
		del self.layers[index]
		if self.selected_layer_id == layer_id:
			self.selected_layer_id = None
		start_layer = self.interaction.start_layer
		if start_layer is not None and start_layer.layer_id == layer_id:
			self.interaction.end()

	def select_layer(self, layer_id: str | None) -> None:
		if layer_id is not None:
			self._index_of(layer_id)
		self.selected_layer_id = layer_id

	def move_layer_order(self, layer_id: str, steps: int) -> int:
		"""
		Raise (positive steps) or lower a layer in the stack.

		Args:
			layer_id: Layer id.
			steps: Positions to move; clamped to the stack.

		Returns:
			New index of the layer.
		"""
		index = self._index_of(layer_id)
		layer = self.layers.pop(index)
		new_index = min(len(self.layers), max(0, index + steps))
		self.layers.insert(new_index, layer)
		return new_index

	#============================================
	# config and view

	def update_config(self, **changes) -> PosterConfig:
		self.config = dataclasses.replace(self.config, **changes)
		return self.config

	def toggle_unit(self) -> PosterConfig:
		new_unit = UNIT_INCH if self.config.unit == UNIT_MM else UNIT_MM
		self.config = tpm.paper.convert_config_units(self.config, new_unit)
		return self.config

	def layout(self) -> LayoutResult:
		tpm.layout.validate_config(self.config)
		return tpm.layout.resolve_layout(self.config)

	def zoom_in(self) -> float:
		self.zoom = min(ZOOM_MAX, round(self.zoom + ZOOM_STEP, 2))
		return self.zoom

	def zoom_out(self) -> float:
		self.zoom = max(ZOOM_MIN, round(self.zoom - ZOOM_STEP, 2))
		return self.zoom

	def display_size(self) -> tuple[float, float]:
		"""
		Logical poster size in editor pixels at zoom 1.0.
		"""
		layout = self.layout()
		display_scale = DISPLAY_SCALE_BY_UNIT[layout.unit]
		return (layout.poster_width * display_scale, layout.poster_height * display_scale)

	def layer_at(self, x: float, y: float) -> Layer | None:
		"""
		Topmost layer at a point given in logical pixels at zoom 1.0.
		"""
		width, height = self.display_size()
		return tpm.layers.hit_test(self.layers, x / width, y / height)

	#============================================
	# pointer gestures

	def pointer_down(self, layer_id: str, pointer_x: float, pointer_y: float, handle: str | None = None) -> None:
		"""
		Start a move, or a resize when a corner handle is given.

		Args:
			layer_id: Layer under the pointer.
			pointer_x: Screen pointer x.
			pointer_y: Screen pointer y.
			handle: Optional corner handle.
		"""
		layer = self.get_layer(layer_id)
		if layer is None:
			return
		self.selected_layer_id = layer_id
		if handle is None:
			self.interaction.begin_move(layer, pointer_x, pointer_y)
		else:
			self.interaction.begin_resize(layer, handle, pointer_x, pointer_y)

	def pointer_move(self, pointer_x: float, pointer_y: float) -> Layer | None:
		"""
		Apply the active gesture to the layer it started on.

		The gesture snapshot owns the target, so selection changes
		during a drag do not redirect it.
		"""
		if not self.interaction.active:
			return None
		layer_id = self.interaction.start_layer.layer_id
		if self.get_layer(layer_id) is None:
			self.interaction.end()
			return None
		width, height = self.display_size()
		target = self.interaction.update(pointer_x, pointer_y, self.zoom, width, height)
		if target is None:
			return None
		return self.update_layer(
			layer_id,
			x=target.x,
			y=target.y,
			width=target.width,
			height=target.height,
		)

	def pointer_up(self) -> None:
		self.interaction.end()

	#============================================
	# export

	@property
	def exporting(self) -> bool:
		return self._export_lock.locked()

	def export(
		self,
		sink: tpm.tiler.PdfSink,
		filename: str = DEFAULT_OUTPUT_NAME,
		scale: float | None = None,
		verbose: bool = False,
	) -> ExportResult:
		"""
		Export the poster, rejecting a second export while one runs.

		Raises:
			ExportInProgressError: If an export is already in flight.
		"""
		if not self._export_lock.acquire(blocking=False):
			raise ExportInProgressError("an export is already in progress")
		try:
			layers = list(self.layers)
			return tpm.tiler.export_poster(self.config, layers, sink, filename, scale, verbose)
		finally:
			self._export_lock.release()
