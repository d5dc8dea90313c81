"""
Tests for the dense anchor-grid decoder.
"""

import numpy as np
import pytest

from inference.decoder import BoxDecoder, ShapeMismatchError


class TestBoxDecoderConstruction:
    """Declared shape validation."""

    def test_expected_shape(self):
        decoder = BoxDecoder(num_anchors=8400, num_classes=80)
        assert decoder.expected_shape == (84, 8400)

    def test_attribute_count_must_match_classes(self):
        """85 attributes cannot describe 80 classes plus 4 box values."""
        with pytest.raises(ShapeMismatchError):
            BoxDecoder(num_anchors=8400, num_classes=80, num_attributes=85)

    def test_non_positive_anchor_count_rejected(self):
        with pytest.raises(ShapeMismatchError):
            BoxDecoder(num_anchors=0)

    def test_from_output_shape_with_batch_axis(self):
        decoder = BoxDecoder.from_output_shape([1, 84, 8400])
        assert decoder.num_anchors == 8400
        assert decoder.num_classes == 80

    def test_from_output_shape_without_batch_axis(self):
        decoder = BoxDecoder.from_output_shape((84, 2100))
        assert decoder.expected_shape == (84, 2100)

    def test_from_output_shape_rejects_dynamic_dims(self):
        with pytest.raises(ShapeMismatchError):
            BoxDecoder.from_output_shape(["batch", 84, "anchors"])

    def test_from_output_shape_rejects_wrong_class_count(self):
        with pytest.raises(ShapeMismatchError):
            BoxDecoder.from_output_shape([1, 84, 8400], num_classes=90)


class TestBoxDecoderDecode:
    """Decoding behavior."""

    def test_empty_output_yields_nothing(self, dense_output):
        decoder = BoxDecoder(num_anchors=8400)
        assert decoder.decode(dense_output([])) == []

    def test_pixel_unit_box_is_normalized(self, dense_output):
        """Values above 1.5 are divided by the input size."""
        decoder = BoxDecoder(num_anchors=8400)
        out = dense_output([(0, (320, 320, 64, 64), 0, 0.9)])

        candidates = decoder.decode(out)

        assert len(candidates) == 1
        c = candidates[0]
        assert c.as_tuple() == pytest.approx((0.45, 0.45, 0.55, 0.55), abs=1e-5)
        assert c.score == pytest.approx(0.9, abs=1e-6)
        assert c.class_id == 0
        assert c.label == "person"

    def test_normalized_box_is_kept(self, dense_output):
        decoder = BoxDecoder(num_anchors=8400)
        out = dense_output([(7, (0.5, 0.5, 0.2, 0.2), 2, 0.8)])

        c = decoder.decode(out)[0]

        assert c.as_tuple() == pytest.approx((0.4, 0.4, 0.6, 0.6), abs=1e-5)
        assert c.label == "car"

    def test_one_large_value_rescales_all_four(self, dense_output):
        """The pixel-units check is per anchor, over x, y, w and h together."""
        decoder = BoxDecoder(num_anchors=8400)
        out = dense_output([(0, (0.5, 0.5, 64.0, 64.0), 0, 0.9)])

        c = decoder.decode(out)[0]

        # x=0.5/640 is near 0, so the left edge clamps
        assert c.x1 == 0.0
        assert c.x2 == pytest.approx(0.5 / 640 + 0.05, abs=1e-5)

    def test_threshold_is_exclusive(self, dense_output):
        decoder = BoxDecoder(num_anchors=8400, confidence_threshold=0.5)
        out = dense_output([
            (0, (0.5, 0.5, 0.1, 0.1), 0, 0.5),
            (1, (0.2, 0.2, 0.1, 0.1), 0, 0.75),
        ])

        candidates = decoder.decode(out)

        assert len(candidates) == 1
        assert candidates[0].score == pytest.approx(0.75)

    def test_ties_resolve_to_lowest_class(self, dense_output):
        decoder = BoxDecoder(num_anchors=8400)
        out = dense_output([(0, (0.5, 0.5, 0.1, 0.1), 5, 0.7)])
        out[4 + 2, 0] = 0.7

        c = decoder.decode(out)[0]

        assert c.class_id == 2

    def test_boxes_are_clamped(self, dense_output):
        decoder = BoxDecoder(num_anchors=8400)
        out = dense_output([(0, (0.05, 0.95, 0.2, 0.2), 0, 0.9)])

        c = decoder.decode(out)[0]

        assert c.x1 == 0.0
        assert c.y2 == 1.0
        assert 0.0 <= c.x2 <= 1.0
        assert 0.0 <= c.y1 <= 1.0

    def test_anchor_order_is_preserved(self, dense_output):
        decoder = BoxDecoder(num_anchors=8400)
        out = dense_output([
            (3, (0.2, 0.2, 0.1, 0.1), 0, 0.4),
            (9, (0.7, 0.7, 0.1, 0.1), 0, 0.95),
        ])

        scores = [c.score for c in decoder.decode(out)]

        assert scores == pytest.approx([0.4, 0.95])

    def test_batch_axis_is_squeezed(self, dense_output):
        decoder = BoxDecoder(num_anchors=8400)
        out = dense_output([(0, (0.5, 0.5, 0.1, 0.1), 0, 0.9)])[np.newaxis, ...]

        assert len(decoder.decode(out)) == 1

    def test_wrong_anchor_count_raises(self):
        decoder = BoxDecoder(num_anchors=8400)
        with pytest.raises(ShapeMismatchError):
            decoder.decode(np.zeros((84, 100), dtype=np.float32))

    def test_class_without_name_is_labeled_by_number(self, dense_output):
        decoder = BoxDecoder(num_anchors=10, num_classes=3, class_names=["a", "b"])
        out = dense_output([(0, (0.5, 0.5, 0.1, 0.1), 2, 0.9)], num_classes=3, num_anchors=10)

        assert decoder.decode(out)[0].label == "2"
