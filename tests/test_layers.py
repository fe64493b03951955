# Tests for the layer model and layer store
"""
Test Layer serialization, color correction defaults and LayerStore ordering,
selection and updates.
"""

import pytest
from pydantic import ValidationError

from compoforge.exceptions import LayerNotFoundError
from compoforge.layers import BlendMode, ColorCorrection, Layer, LayerStore


def make_layer(z_index: int, **kwargs) -> Layer:
    return Layer(name=f"Layer {z_index}", src=b"png", z_index=z_index, **kwargs)


@pytest.fixture
def store():
    """Store with three layers at zIndex 1, 2, 3."""
    return LayerStore([make_layer(3), make_layer(1), make_layer(2)])


def z_order(store: LayerStore) -> list[str]:
    return [layer.name for layer in store.layers]


class TestColorCorrection:
    """Color correction defaults and ranges."""

    def test_defaults(self):
        """All filters default to no-ops."""
        correction = ColorCorrection()
        assert correction.brightness == 100
        assert correction.contrast == 100
        assert correction.saturation == 100
        assert correction.hue == 0
        assert correction.blur == 0
        assert correction.is_default()

    def test_reset(self):
        """reset() returns the documented defaults."""
        correction = ColorCorrection(brightness=150, hue=-90, blur=3)
        assert not correction.is_default()
        assert correction.reset() == ColorCorrection()

    def test_css_filter(self):
        """The CSS filter string keeps the fixed order."""
        assert ColorCorrection().css_filter() == (
            "brightness(100%) contrast(100%) saturate(100%) hue-rotate(0deg) blur(0px)"
        )
        assert ColorCorrection(brightness=50, hue=-45.5, blur=2).css_filter() == (
            "brightness(50%) contrast(100%) saturate(100%) hue-rotate(-45.5deg) blur(2px)"
        )

    @pytest.mark.parametrize("field,value", [
        ("brightness", 201),
        ("contrast", -1),
        ("saturation", 250),
        ("hue", 181),
        ("blur", 21),
    ])
    def test_out_of_range_rejected(self, field, value):
        """Values outside the documented ranges fail validation."""
        with pytest.raises(ValidationError):
            ColorCorrection(**{field: value})


class TestBlendMode:
    """Blend mode catalogue."""

    def test_sixteen_modes(self):
        """All sixteen CSS compositing operators exist."""
        assert len(BlendMode) == 16
        assert BlendMode("color-dodge") is BlendMode.COLOR_DODGE

    def test_labels(self):
        """Labels are title-cased CSS names."""
        assert BlendMode.COLOR_DODGE.label == "Color Dodge"
        assert BlendMode.NORMAL.label == "Normal"

    def test_separability(self):
        """Only hue, saturation, color and luminosity are non-separable."""
        non_separable = {mode for mode in BlendMode if not mode.is_separable}
        assert non_separable == {BlendMode.HUE, BlendMode.SATURATION, BlendMode.COLOR, BlendMode.LUMINOSITY}


class TestLayerModel:
    """Layer defaults and serialization."""

    def test_defaults(self):
        """A new layer is a visible, unlocked, untransformed image layer."""
        layer = Layer()
        assert layer.is_image()
        assert layer.is_visible and not layer.is_locked and not layer.is_masked
        assert layer.rotation == 0 and layer.scale == 1.0 and layer.opacity == 1.0
        assert layer.blend_mode == BlendMode.NORMAL
        assert not layer.has_transform()

    def test_unique_ids(self):
        """Each layer gets its own id."""
        assert Layer().id != Layer().id

    def test_rotation_not_normalized(self):
        """Rotation keeps whatever value it is given."""
        assert Layer(rotation=450).rotation == 450

    @pytest.mark.parametrize("field,value", [("opacity", 1.5), ("scale", 0), ("width", -1)])
    def test_invalid_values_rejected(self, field, value):
        """Out-of-range geometry and appearance values fail validation."""
        with pytest.raises(ValidationError):
            Layer(**{field: value})

    def test_frozen(self):
        """Layers are immutable."""
        layer = Layer()
        with pytest.raises(ValidationError):
            layer.x = 5

    def test_api_dict_uses_camel_case(self):
        """API dicts use the front end's key names."""
        data = Layer(blend_mode=BlendMode.SCREEN, z_index=4).to_api_dict(include_content=False)
        assert data["type"] == "image"
        assert data["blendMode"] == "screen"
        assert data["zIndex"] == 4
        assert data["isVisible"] is True
        assert data["colorCorrection"]["brightness"] == 100
        assert "src" not in data and "originalSrc" not in data

    def test_api_dict_round_trip(self):
        """Content survives base64 transport."""
        layer = Layer(src=b"\x89PNG-bytes", original_src=b"\x00original", rotation=30)
        restored = Layer.from_api_dict(layer.to_api_dict())
        assert restored == layer

    def test_accepts_camel_case_input(self):
        """Both alias and field names populate the model."""
        layer = Layer.model_validate({"isLocked": True, "blendMode": "multiply", "zIndex": 7})
        assert layer.is_locked
        assert layer.blend_mode is BlendMode.MULTIPLY
        assert layer.z_index == 7


class TestStoreOrdering:
    """Draw order and zIndex moves."""

    def test_layers_sorted_by_z_index(self, store):
        """Iteration is in ascending zIndex."""
        assert z_order(store) == ["Layer 1", "Layer 2", "Layer 3"]

    def test_ties_keep_insertion_order(self):
        """Layers with equal zIndex keep the order they were added in."""
        first = Layer(name="first", z_index=1)
        second = Layer(name="second", z_index=1)
        store = LayerStore()
        store.add(first)
        store.add(second)
        assert z_order(store) == ["first", "second"]

    def test_next_z_index(self, store):
        """New layers go above the current maximum."""
        assert store.next_z_index() == 4
        assert LayerStore().next_z_index() == 1

    def test_move_up_swaps_with_neighbor(self, store):
        """Moving up exchanges zIndex with the next-higher layer."""
        bottom = store.layers[0]
        assert store.move_z(bottom.id, "up")
        assert z_order(store) == ["Layer 2", "Layer 1", "Layer 3"]
        assert store.get(bottom.id).z_index == 2

    def test_move_up_then_down_restores(self, store):
        """up followed by down is a no-op on the ordering."""
        middle = store.layers[1]
        before = [(layer.id, layer.z_index) for layer in store.layers]
        store.move_z(middle.id, "up")
        store.move_z(middle.id, "down")
        assert [(layer.id, layer.z_index) for layer in store.layers] == before

    def test_move_at_extremes_is_noop(self, store):
        """The top layer cannot go up, the bottom layer cannot go down."""
        top, bottom = store.layers[-1], store.layers[0]
        assert not store.move_z(top.id, "up")
        assert not store.move_z(bottom.id, "down")
        assert z_order(store) == ["Layer 1", "Layer 2", "Layer 3"]

    def test_sparse_z_values_preserved(self):
        """Moves swap values and never renumber."""
        store = LayerStore([make_layer(10), make_layer(20), make_layer(50)])
        store.move_z(store.layers[0].id, "up")
        assert sorted(layer.z_index for layer in store.layers) == [10, 20, 50]

    def test_move_unknown_layer(self, store):
        """An unknown id is reported."""
        with pytest.raises(LayerNotFoundError):
            store.move_z("missing", "up")

    def test_move_invalid_direction(self, store):
        """Only 'up' and 'down' are accepted."""
        with pytest.raises(ValueError):
            store.move_z(store.layers[0].id, "sideways")


class TestStoreMutations:
    """Add, remove, update and selection."""

    def test_add_duplicate_id(self, store):
        """Ids are unique within a store."""
        with pytest.raises(ValueError):
            store.add(store.layers[0])

    def test_remove(self, store):
        """remove() reports whether the layer existed."""
        layer_id = store.layers[0].id
        assert store.remove(layer_id)
        assert layer_id not in store
        assert len(store) == 2
        assert not store.remove(layer_id)

    def test_remove_clears_selection(self, store):
        """Deleting the selected layer leaves no selection behind."""
        layer_id = store.layers[1].id
        store.select(layer_id)
        store.remove(layer_id)
        assert store.selected_id is None
        assert store.selected is None

    def test_remove_other_keeps_selection(self, store):
        """Deleting a different layer keeps the selection."""
        selected, other = store.layers[1].id, store.layers[0].id
        store.select(selected)
        store.remove(other)
        assert store.selected_id == selected

    def test_select_unknown(self, store):
        """Only existing layers can be selected."""
        with pytest.raises(LayerNotFoundError):
            store.select("missing")

    def test_select_none_clears(self, store):
        """Selecting None clears the selection."""
        store.select(store.layers[0].id)
        store.select(None)
        assert store.selected_id is None

    def test_update_merges(self, store):
        """Unspecified fields keep their values."""
        layer = store.layers[0]
        updated = store.update(layer.id, x=42, opacity=0.5)
        assert updated.x == 42
        assert updated.opacity == 0.5
        assert updated.name == layer.name
        assert updated.src == layer.src
        assert store.get(layer.id) == updated

    def test_update_accepts_aliases(self, store):
        """camelCase names are accepted."""
        layer_id = store.layers[0].id
        updated = store.update(layer_id, isVisible=False, blendMode="multiply")
        assert not updated.is_visible
        assert updated.blend_mode is BlendMode.MULTIPLY

    def test_update_z_index_reorders(self, store):
        """Changing zIndex changes the draw order."""
        bottom = store.layers[0]
        store.update(bottom.id, z_index=99)
        assert store.layers[-1].id == bottom.id

    def test_update_invalid_value_leaves_store_unchanged(self, store):
        """A rejected update changes nothing."""
        layer = store.layers[0]
        with pytest.raises(ValidationError):
            store.update(layer.id, opacity=1.5)
        assert store.get(layer.id) == layer

    def test_update_unknown_field(self, store):
        """Unknown field names are an error."""
        with pytest.raises(ValueError):
            store.update(store.layers[0].id, sparkle=True)

    def test_update_id_rejected(self, store):
        """The id is immutable."""
        with pytest.raises(ValueError):
            store.update(store.layers[0].id, id="other")

    def test_stale_update_ignored(self, store):
        """Updating a deleted layer is a silent no-op."""
        layer_id = store.layers[0].id
        store.remove(layer_id)
        assert store.update(layer_id, x=1) is None
        assert len(store) == 2

    def test_snapshots_are_immutable(self, store):
        """A snapshot taken before an update does not change."""
        snapshot = store.layers
        store.update(snapshot[0].id, x=123)
        assert snapshot[0].x == 0
        assert store.layers[0].x == 123

    def test_reset_color_correction(self, store):
        """Color correction can be reset to defaults."""
        layer_id = store.layers[0].id
        store.update(layer_id, color_correction=ColorCorrection(brightness=150))
        updated = store.reset_color_correction(layer_id)
        assert updated.color_correction.is_default()

    def test_visible_layers(self, store):
        """Invisible layers are filtered out."""
        hidden = store.layers[1].id
        store.update(hidden, is_visible=False)
        assert [layer.id for layer in store.visible_layers()] == [
            store.layers[0].id, store.layers[2].id,
        ]
