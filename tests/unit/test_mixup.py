"""
Unit Tests for Mixups
=====================

Layout geometry, slot compositing and mixup persistence.
"""

import io
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from PIL import Image
from redis.exceptions import ConnectionError as RedisConnectionError

from inkrecipes.core.errors import DitherInputInvalid, PersistenceUnavailable, SlotResizeFailure
from inkrecipes.core.mixup import (
    LAYOUT_OPTIONS,
    InMemoryMixupStore,
    MixupCompositor,
    MixupLayoutId,
    RedisMixupStore,
    build_assignments,
    create_mixup_store,
    get_layout_by_id,
)
from inkrecipes.core.mixup.compositor import fit_to_slot
from inkrecipes.models.schemas import DitherMethod, LayoutOption, LayoutSlot, MixupRecord, MixupSlotRecord

from tests.utils.mocks import FakePipeline, MockRedisClient, solid_png

BLACK = (0, 0, 0, 255)


def rect(slot):
    return (slot.left, slot.top, slot.width, slot.height)


class TestLayouts:
    """Bundled layouts and slot resolution."""

    def test_quarters_at_800x480(self):
        layout = get_layout_by_id(MixupLayoutId.QUARTERS.value)
        resolved = [rect(slot.resolve(800, 480)) for slot in layout.slots]
        assert resolved == [(0, 0, 400, 240), (400, 0, 400, 240), (0, 240, 400, 240), (400, 240, 400, 240)]

    def test_left_rail(self):
        layout = get_layout_by_id("left-rail")
        resolved = {slot.id: rect(slot.resolve(800, 480)) for slot in layout.slots}
        assert resolved == {
            "left": (0, 0, 400, 480),
            "top-right": (400, 0, 400, 240),
            "bottom-right": (400, 240, 400, 240),
        }

    def test_every_layout_tiles_its_canvas(self):
        for layout in LAYOUT_OPTIONS:
            area = sum(slot.resolve(800, 480).width * slot.resolve(800, 480).height for slot in layout.slots)
            assert area == 800 * 480, layout.id

    def test_unknown_layout(self):
        assert get_layout_by_id("nine-grid") is None

    def test_slot_is_clamped_to_canvas(self):
        slot = LayoutSlot(id="s", label="S", x=0.9, y=0.0, width=0.5, height=1.0)
        assert rect(slot.resolve(100, 50)) == (90, 0, 10, 50)

    def test_odd_canvas_rounds_to_integers(self):
        slot = LayoutSlot(id="s", label="S", x=0.5, y=0.5, width=0.5, height=0.5)
        resolved = slot.resolve(801, 481)
        assert all(isinstance(value, int) for value in rect(resolved))
        assert resolved.left + resolved.width <= 801
        assert resolved.top + resolved.height <= 481

    def test_zero_size_slot_is_empty(self):
        slot = LayoutSlot(id="s", label="S", x=0.0, y=0.0, width=0.0, height=0.5)
        assert slot.resolve(800, 480).is_empty

    def test_build_assignments(self):
        layout = get_layout_by_id("quarters")
        assert build_assignments(layout, ["a", "b"]) == {"top-left": "a", "top-right": "b"}
        assert build_assignments(layout, ["a"], existing={"bottom-right": "z"}) == {"top-left": "a", "bottom-right": "z"}

    def test_record_assignment_uses_order_index(self):
        record = MixupRecord(
            id="m1",
            layout_id="quarters",
            slots=[
                MixupSlotRecord(slot_id="top-right", recipe_slug="b", order_index=1),
                MixupSlotRecord(slot_id="top-left", recipe_slug="a", order_index=0),
            ],
        )
        assert list(record.assignment().items()) == [("top-left", "a"), ("top-right", "b")]


class TestFitToSlot:
    """Cover-fit resize and crop."""

    def test_exact_size(self):
        image = fit_to_slot(solid_png(640, 480), 400, 240)
        assert image.size == (400, 240)
        assert image.mode == "RGBA"

    def test_centre_crop(self):
        source = Image.new("RGBA", (300, 100), (255, 255, 255, 255))
        source.paste((0, 0, 0, 255), (100, 0, 200, 100))
        buffer = io.BytesIO()
        source.save(buffer, format="PNG")

        image = fit_to_slot(buffer.getvalue(), 100, 100)
        assert image.getpixel((50, 50)) == (0, 0, 0, 255)

    def test_undecodable_data(self):
        with pytest.raises(SlotResizeFailure):
            fit_to_slot(b"not an image", 10, 10)


class TestMixupCompositor:
    """Slot rendering and the single dither pass."""

    @pytest.mark.asyncio
    async def test_slots_render_at_their_pixel_size(self):
        pipeline = FakePipeline({"a": BLACK, "b": BLACK})
        layout = get_layout_by_id("top-banner")
        await MixupCompositor(pipeline).render(layout, 800, 480, {"top": "a", "bottom-left": "b"})
        assert sorted(pipeline.requests) == [("a", 800, 240), ("b", 400, 240)]

    @pytest.mark.asyncio
    async def test_unassigned_slots_stay_white(self):
        layout = get_layout_by_id("quarters")
        bitmap = await MixupCompositor(FakePipeline({"dark": BLACK})).render(layout, 800, 480, {"top-left": "dark"})

        assert (bitmap.width, bitmap.height) == (800, 480)
        assert bitmap.pixel_index(10, 10) == 1
        assert bitmap.pixel_index(399, 239) == 1
        assert bitmap.pixel_index(400, 0) == 0
        assert bitmap.pixel_index(700, 400) == 0

    @pytest.mark.asyncio
    async def test_failing_slot_does_not_affect_others(self):
        pipeline = FakePipeline({"dark": BLACK}, failing=("broken",))
        layout = get_layout_by_id("vertical-halves")
        bitmap = await MixupCompositor(pipeline).render(
            layout, 80, 40, {"left-half": "broken", "right-half": "dark"}
        )
        assert bitmap.pixel_index(10, 10) == 0
        assert bitmap.pixel_index(60, 10) == 1

    @pytest.mark.asyncio
    async def test_failing_quarter_leaves_other_quarters_rendered(self):
        pipeline = FakePipeline({"dark": BLACK}, failing=("broken",))
        layout = get_layout_by_id("quarters")
        assignment = {"top-left": "dark", "top-right": "broken", "bottom-left": "dark", "bottom-right": "dark"}

        bitmap = await MixupCompositor(pipeline).render(layout, 80, 40, assignment)

        cells = bitmap.to_array()
        assert len(pipeline.requests) == 4
        assert (cells[:20, 40:] == 0).all()
        assert (cells[:20, :40] == 1).all()
        assert (cells[20:, :] == 1).all()

    def test_dither_method_from_settings(self, test_settings):
        settings = test_settings.model_copy(update={"dither_method": DitherMethod.BAYER})
        compositor = MixupCompositor.from_settings(FakePipeline({}), settings)

        assert compositor.dither_method is DitherMethod.BAYER
        assert compositor.preserve_edges is False

    @pytest.mark.asyncio
    async def test_slot_without_image_stays_white(self):
        layout = get_layout_by_id("horizontal-halves")
        bitmap = await MixupCompositor(FakePipeline({})).render(layout, 40, 40, {"top-half": "missing"})
        assert set(bitmap.indices()) == {0}

    @pytest.mark.asyncio
    async def test_grayscale_levels(self):
        layout = get_layout_by_id("quarters")
        bitmap = await MixupCompositor(FakePipeline({"dark": BLACK})).render(layout, 40, 20, {"top-left": "dark"}, levels=4)
        assert bitmap.levels == 4
        assert bitmap.pixel_index(0, 0) == 3

    @pytest.mark.asyncio
    async def test_invalid_levels_rejected_before_rendering(self):
        pipeline = FakePipeline({"dark": BLACK})
        layout = get_layout_by_id("quarters")
        with pytest.raises(DitherInputInvalid):
            await MixupCompositor(pipeline).render(layout, 40, 20, {"top-left": "dark"}, levels=3)
        assert pipeline.requests == []

    @pytest.mark.asyncio
    async def test_single_dither_pass_spans_slot_borders(self):
        layout = LayoutOption(
            id="custom",
            title="Custom",
            slots=[LayoutSlot(id="only", label="Only", x=0.0, y=0.0, width=1.0, height=1.0)],
        )
        gray = (128, 128, 128, 255)
        bitmap = await MixupCompositor(FakePipeline({"gray": gray})).render(layout, 16, 16, {"only": "gray"})
        assert 0 < sum(bitmap.indices()) < 256


class TestMixupStores:
    """Mixup persistence backends."""

    @pytest.fixture
    def record(self):
        return MixupRecord(
            id="m1",
            name="Morning",
            layout_id="quarters",
            slots=[MixupSlotRecord(slot_id="top-left", recipe_slug="weather", order_index=0)],
            created_at=datetime(2024, 10, 19, 8, 0, tzinfo=timezone.utc),
        )

    @pytest.mark.asyncio
    async def test_in_memory_round_trip(self, record):
        store = InMemoryMixupStore()
        await store.save_mixup(record)
        assert await store.get_mixup("m1") == record
        assert await store.get_mixup("m2") is None

    @pytest.mark.asyncio
    async def test_redis_round_trip(self, record):
        client = MockRedisClient()
        store = RedisMixupStore(client_factory=lambda: client, key_prefix="test:mixup")
        await store.save_mixup(record)

        assert "test:mixup:m1" in client._data
        loaded = await store.get_mixup("m1")
        assert loaded == record

    @pytest.mark.asyncio
    async def test_redis_unknown_id(self):
        store = RedisMixupStore(client_factory=MockRedisClient)
        assert await store.get_mixup("missing") is None

    @pytest.mark.asyncio
    async def test_redis_record_without_timestamp(self):
        client = AsyncMock()
        client.hgetall.return_value = {"name": "", "layout_id": "quarters", "slots": "[]"}
        record = await RedisMixupStore(client_factory=lambda: client).get_mixup("m1")
        assert record.layout_id == "quarters"
        assert record.slots == []

    @pytest.mark.asyncio
    async def test_redis_connection_error(self):
        client = AsyncMock()
        client.hgetall.side_effect = RedisConnectionError("connection refused")
        with pytest.raises(PersistenceUnavailable):
            await RedisMixupStore(client_factory=lambda: client).get_mixup("m1")

    @pytest.mark.asyncio
    async def test_redis_not_initialized(self):
        def factory():
            raise RuntimeError("Redis not initialized")

        with pytest.raises(PersistenceUnavailable):
            await RedisMixupStore(client_factory=factory).get_mixup("m1")

    @pytest.mark.asyncio
    async def test_corrupt_record(self):
        client = AsyncMock()
        client.hgetall.return_value = {"name": "x", "layout_id": "quarters", "slots": "{not json"}
        with pytest.raises(PersistenceUnavailable):
            await RedisMixupStore(client_factory=lambda: client).get_mixup("m1")

    def test_store_factory(self, test_settings):
        assert isinstance(create_mixup_store(test_settings), InMemoryMixupStore)
        redis_settings = test_settings.model_copy(update={"mixup_store": "redis"})
        assert isinstance(create_mixup_store(redis_settings), RedisMixupStore)
