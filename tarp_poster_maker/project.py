"""
JSON project files and export manifests.
"""

# Standard Library
import base64
import dataclasses
import io
import json
import pathlib

# PIP3 modules
import PIL.Image

# local repo modules
import tarp_poster_maker as tpm
import tarp_poster_maker.config
import tarp_poster_maker.errors
import tarp_poster_maker.layers


PosterConfig = tpm.config.PosterConfig
LayoutResult = tpm.config.LayoutResult
ExportResult = tpm.config.ExportResult
Layer = tpm.layers.Layer
LayerStyle = tpm.layers.LayerStyle
InvalidConfigError = tpm.errors.InvalidConfigError

KIND_IMAGE = tpm.layers.KIND_IMAGE
CONFIG_FIELDS = tuple(field.name for field in dataclasses.fields(PosterConfig))
STYLE_FIELDS = tuple(field.name for field in dataclasses.fields(LayerStyle))
LAYER_GEOMETRY_FIELDS = ("x", "y", "width", "height", "rotation", "opacity")


#============================================
def config_from_dict(data: dict) -> PosterConfig:
	"""
	Build a PosterConfig from a project "config" object.

	Args:
		data: Mapping of config field names to values.

	Returns:
		PosterConfig with defaults for missing fields.

	Raises:
		InvalidConfigError: On an unknown field.
	"""
	for key in data:
		if key not in CONFIG_FIELDS:
			raise InvalidConfigError(key, data[key], "unknown config field")
	return PosterConfig(**data)


#============================================
def layer_from_dict(data: dict, base_dir: pathlib.Path) -> Layer:
	"""
	Build a Layer from a project layer object.

	Image layers may give "path" (relative to the project file) instead
	of inline "content".

	Args:
		data: Layer mapping.
		base_dir: Directory of the project file.

	Returns:
		Layer.
	"""
	kind = data.get("kind", KIND_IMAGE)
	content = data.get("content")
	if kind == KIND_IMAGE and data.get("path"):
		image_path = base_dir / data["path"]
		# unreadable files become undecodable layers, skipped at export
		content = image_path.read_bytes() if image_path.is_file() else None
	layer = tpm.layers.create_layer(kind, content)
	if data.get("id"):
		layer.layer_id = str(data["id"])
	for name in LAYER_GEOMETRY_FIELDS:
		if name in data:
			setattr(layer, name, float(data[name]))
	style_data = data.get("style")
	if style_data:
		style = layer.style or LayerStyle()
		layer.style = dataclasses.replace(
			style,
			**{key: value for key, value in style_data.items() if key in STYLE_FIELDS},
		)
	return layer


#============================================
def load_project(path: pathlib.Path) -> tuple[PosterConfig, list[Layer]]:
	"""
	Load a JSON project file.

	Args:
		path: Project JSON path.

	Returns:
		Tuple of (config, layers in paint order).
	"""
	with path.open("r", encoding="utf-8") as handle:
		data = json.load(handle)
	config = config_from_dict(data.get("config", {}))
	base_dir = path.parent
	layers = [layer_from_dict(item, base_dir) for item in data.get("layers", [])]
	return (config, layers)


#============================================
def encode_layer_content(layer: Layer) -> object:
	"""
	Encode a layer's content for JSON.
	"""
	content = layer.content
	if isinstance(content, PIL.Image.Image):
		buffer = io.BytesIO()
		content.save(buffer, format="PNG")
		content = buffer.getvalue()
	if isinstance(content, (bytes, bytearray)):
		encoded = base64.b64encode(bytes(content)).decode("ascii")
		return f"data:application/octet-stream;base64,{encoded}"
	return content


#============================================
def save_project(path: pathlib.Path, config: PosterConfig, layers: list[Layer]) -> None:
	"""
	Write a JSON project file with inline layer content.

	Args:
		path: Output path.
		config: Poster config.
		layers: Layers in paint order.
	"""
	layer_items = []
	for layer in layers:
		item = {
			"id": layer.layer_id,
			"kind": layer.kind,
			"content": encode_layer_content(layer),
		}
		for name in LAYER_GEOMETRY_FIELDS:
			item[name] = getattr(layer, name)
		if layer.style is not None:
			item["style"] = dataclasses.asdict(layer.style)
		layer_items.append(item)
	data = {
		"config": dataclasses.asdict(config),
		"layers": layer_items,
	}
	with path.open("w", encoding="utf-8") as handle:
		json.dump(data, handle, indent=2, sort_keys=True)


#============================================
def write_manifest(
	manifest_path: pathlib.Path,
	config: PosterConfig,
	layout: LayoutResult,
	result: ExportResult,
) -> None:
	"""
	Write a manifest JSON file for an export.

	Args:
		manifest_path: Output path.
		config: Poster config.
		layout: Resolved layout.
		result: Export result.
	"""
	data = {
		"output": result.filename,
		"pages": result.pages,
		"rows": result.rows,
		"cols": result.cols,
		"scale": result.scale,
		"surface_size": list(result.surface_size),
		"skipped_layers": result.skipped_layers,
		"blank_tiles": result.blank_tiles,
		"layout": dataclasses.asdict(layout),
		"config": dataclasses.asdict(config),
	}
	with manifest_path.open("w", encoding="utf-8") as handle:
		json.dump(data, handle, indent=2, sort_keys=True)
