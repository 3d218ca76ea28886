"""DesignController — mutation API, derived state, signals and render items.

Covers:
- Scenarios A/B/C end to end through the controller
- Failed mutations leave the design untouched
- add/remove and random mutation sequences are undone exactly
- Dirty/version tracking and signal emission
"""

import dataclasses
import itertools
import sys
from unittest.mock import MagicMock

import numpy as np
import pytest
from PyQt6.QtCore import QCoreApplication

from conftest import ALL_PARTS, BEAM_POSITION, DECK, SWING_POSITION
from playset.core.catalog_repository import CatalogRepository
from playset.core.design_controller import DesignController
from playset.core.exceptions import CatalogMiss, InstanceNotFound, QuoteBlocked
from playset.export.quote_payload import build_quote_submission
from playset.models.catalog import Dimensions, Vector3
from playset.models.design import Design, PlacedInstance
from playset.models.pricing import LocationInfo
from playset.models.quote import CustomerInfo

_app = QCoreApplication.instance() or QCoreApplication(sys.argv)

CUSTOMER = CustomerInfo(
    name="Thandi Mokoena", email="thandi@example.co.za", phone="+27 21 555 0101",
    city="Cape Town", state="Western Cape", postal_code="8001",
)


def _controller(**kwargs):
    counter = itertools.count(1)
    return DesignController(
        CatalogRepository(ALL_PARTS), id_factory=lambda: f"i{next(counter)}", **kwargs,
    )


# ===================================================================
# Scenarios
# ===================================================================

class TestScenarios:
    def setup_method(self):
        self.ctrl = _controller()
        self.ctrl.set_location(LocationInfo("Cape Town", "Western Cape", "8001"))

    def test_scenario_a(self):
        deck = self.ctrl.add_part("deck-4x4", (0, 0, 0))
        meta = self.ctrl.design.metadata
        assert meta.total_price == 4500.0
        assert meta.instance_count == 1
        assert self.ctrl.validation.is_valid
        assert self.ctrl.design.instances[0].instance_id == deck

    def test_scenario_b_blocks_quote(self):
        self.ctrl.add_part("deck-4x4", (0, 0, 0))
        swing = self.ctrl.add_part("swing-single", SWING_POSITION)
        result = self.ctrl.validation
        assert not result.is_valid
        assert any(swing in e.instance_ids for e in result.errors)
        assert self.ctrl.highlighted_instance_ids == frozenset({swing})
        with pytest.raises(QuoteBlocked):
            build_quote_submission(self.ctrl, CUSTOMER)

    def test_scenario_c(self):
        self.ctrl.add_part("deck-4x4", (0, 0, 0))
        self.ctrl.add_part("swing-single", SWING_POSITION)
        self.ctrl.add_part("swing-beam", BEAM_POSITION)
        assert self.ctrl.validation.is_valid
        assert self.ctrl.design.metadata.total_price == 8700.0
        assert self.ctrl.pricing.total == 8700.0 + 1090.0

        submission = build_quote_submission(self.ctrl, CUSTOMER)
        assert submission.client_total == 9790.0
        assert not submission.include_installation


# ===================================================================
# Mutations
# ===================================================================

class TestMutations:
    def setup_method(self):
        self.ctrl = _controller()
        self.deck = self.ctrl.add_part("deck-4x4", (0, 0, 0))

    def test_add_defaults_to_origin(self):
        swing = self.ctrl.add_part("swing-single")
        inst = self.ctrl.design.find(swing)
        assert inst.position == Vector3(0, 0, 0)
        assert inst.rotation == Vector3(0, 0, 0)
        assert inst.customizations == {}

    def test_add_generates_unique_ids(self):
        ids = {self.ctrl.add_part("post-9ft", (i * 3, 10, 0)) for i in range(5)}
        assert len(ids) == 5

    def test_default_id_factory_uses_uuid(self):
        ctrl = DesignController(CatalogRepository(ALL_PARTS))
        a = ctrl.add_part("deck-4x4")
        b = ctrl.add_part("deck-4x4", (10, 0, 0))
        assert a != b and len(a) == 36

    def test_move(self):
        self.ctrl.move_part(self.deck, (2, 3, 0))
        assert self.ctrl.design.find(self.deck).position == Vector3(2, 3, 0)

    def test_rotate_updates_metadata(self):
        slide = self.ctrl.add_part("slide-wave", (10, 0, 0))
        self.ctrl.remove_part(self.deck)
        dims = self.ctrl.design.metadata.dimensions
        assert (dims.width, dims.depth) == (2.0, 8.0)
        self.ctrl.rotate_part(slide, (0, 0, 90))
        dims = self.ctrl.design.metadata.dimensions
        assert (dims.width, dims.depth) == (8.0, 2.0)

    def test_set_and_remove_customization(self):
        self.ctrl.set_customization(self.deck, "color", "blue")
        assert self.ctrl.design.find(self.deck).customizations == {"color": "blue"}
        self.ctrl.set_customization(self.deck, "color", None)
        assert self.ctrl.design.find(self.deck).customizations == {}

    def test_duplicate_offsets_copy(self):
        self.ctrl.set_customization(self.deck, "label", "Fort")
        copy_id = self.ctrl.duplicate_part(self.deck)
        copied = self.ctrl.design.find(copy_id)
        assert copy_id != self.deck
        assert copied.position == Vector3(2, 2, 0)
        assert copied.customizations == {"label": "Fort"}
        assert self.ctrl.design.metadata.instance_count == 2

    def test_clear_resets_totals(self):
        self.ctrl.add_part("swing-single", SWING_POSITION)
        self.ctrl.clear()
        meta = self.ctrl.design.metadata
        assert meta.total_price == 0.0
        assert meta.estimated_weight == 0.0
        assert meta.instance_count == 0
        assert [e.rule_id for e in self.ctrl.validation.errors] == ["design-empty"]

    def test_clear_empty_design_records_nothing(self):
        ctrl = _controller()
        changed = MagicMock()
        ctrl.design_changed.connect(changed)
        ctrl.clear()
        assert not ctrl.can_undo
        assert not ctrl.is_dirty
        changed.assert_not_called()

    def test_rename_strips(self):
        self.ctrl.rename("  Backyard Fort ")
        assert self.ctrl.design.name == "Backyard Fort"

    def test_new_design(self):
        self.ctrl.new_design("Second")
        assert self.ctrl.design == Design(name="Second")
        assert not self.ctrl.is_dirty

    def test_load_design_copies_input(self):
        design = Design(id="abc", name="Loaded", instances=[
            PlacedInstance("x", "deck-4x4", Vector3(0, 0, 0)),
        ])
        self.ctrl.load_design(design)
        assert self.ctrl.design.id == "abc"
        assert self.ctrl.design.metadata.total_price == 4500.0
        self.ctrl.move_part("x", (5, 5, 0))
        assert design.instances[0].position == Vector3(0, 0, 0)

    def test_remove_part_missing_from_catalog(self):
        design = Design(instances=[PlacedInstance("x", "retired-tower")])
        self.ctrl.load_design(design)
        assert self.ctrl.validation.has_rule("catalog-missing")
        self.ctrl.remove_part("x")
        assert self.ctrl.design.instances == []


class TestFailedMutations:
    """A rejected mutation changes nothing and records no history."""

    def setup_method(self):
        self.ctrl = _controller()
        self.deck = self.ctrl.add_part("deck-4x4", (0, 0, 0))
        self.before = self.ctrl.snapshot()
        self.version = self.ctrl.version
        self.undo_count = self.ctrl.undo_manager.undo_count

    def _assert_untouched(self):
        assert self.ctrl.design == self.before
        assert self.ctrl.version == self.version
        assert self.ctrl.undo_manager.undo_count == self.undo_count

    def test_unknown_catalog_id(self):
        with pytest.raises(CatalogMiss):
            self.ctrl.add_part("no-such-part")
        self._assert_untouched()

    def test_unpublished_part(self):
        with pytest.raises(CatalogMiss) as exc_info:
            self.ctrl.add_part("retired-tower")
        assert exc_info.value.unpublished
        self._assert_untouched()

    @pytest.mark.parametrize("call", [
        lambda c: c.move_part("missing", (1, 1, 0)),
        lambda c: c.rotate_part("missing", (0, 0, 90)),
        lambda c: c.remove_part("missing"),
        lambda c: c.duplicate_part("missing"),
        lambda c: c.set_customization("missing", "color", "red"),
    ])
    def test_unknown_instance(self, call):
        with pytest.raises(InstanceNotFound):
            call(self.ctrl)
        self._assert_untouched()

    def test_unknown_customization_key(self):
        with pytest.raises(ValueError, match="Unknown customization key"):
            self.ctrl.set_customization(self.deck, "price", "1")
        self._assert_untouched()

    def test_empty_name(self):
        with pytest.raises(ValueError):
            self.ctrl.rename("   ")
        self._assert_untouched()

    def test_instance_whose_part_was_retired(self):
        self.ctrl.load_design(Design(instances=[PlacedInstance("x", "retired-tower")]))
        before = self.ctrl.snapshot()
        with pytest.raises(CatalogMiss):
            self.ctrl.move_part("x", (1, 1, 0))
        assert self.ctrl.design == before

    def test_metadata_failure_rolls_back(self):
        bad = dataclasses.replace(DECK, id="deck-cm", dimensions=Dimensions(4, 4, 1, unit="cm"))
        ctrl = DesignController(CatalogRepository([*ALL_PARTS, bad]))
        ctrl.add_part("deck-4x4")
        before = ctrl.snapshot()
        version = ctrl.version
        undo_count = ctrl.undo_manager.undo_count

        with pytest.raises(ValueError, match="Unknown length unit"):
            ctrl.add_part("deck-cm", (10, 0, 0))
        assert ctrl.design == before
        assert ctrl.design.metadata.instance_count == 1
        assert ctrl.version == version
        assert ctrl.undo_manager.undo_count == undo_count


# ===================================================================
# Undo laws
# ===================================================================

class TestUndoLaws:
    def test_add_then_remove_restores_snapshot(self):
        ctrl = _controller()
        ctrl.add_part("deck-4x4")
        before = ctrl.snapshot()
        swing = ctrl.add_part("swing-single", SWING_POSITION)
        ctrl.remove_part(swing)
        assert ctrl.design == before

    @pytest.mark.parametrize("seed", [3, 11, 29, 101])
    def test_random_sequence_undone_exactly(self, seed):
        rng = np.random.default_rng(seed)
        ctrl = _controller()
        ctrl.add_part("deck-4x4")
        ctrl.undo_manager.clear()
        start = ctrl.snapshot()
        published = [p.id for p in ALL_PARTS if p.published]

        steps = 0
        for _ in range(25):
            ids = [i.instance_id for i in ctrl.design.instances]
            op = int(rng.integers(6)) if ids else 0
            target = ids[int(rng.integers(len(ids)))] if ids else None
            if op == 0:
                ctrl.add_part(published[int(rng.integers(len(published)))],
                              tuple(float(v) for v in rng.integers(0, 20, size=3)))
            elif op == 1:
                ctrl.move_part(target, tuple(float(v) for v in rng.integers(0, 20, size=3)))
            elif op == 2:
                ctrl.rotate_part(target, (0, 0, float(rng.choice([0, 90, 180, 270]))))
            elif op == 3:
                ctrl.remove_part(target)
            elif op == 4:
                ctrl.set_customization(target, "color", str(rng.choice(["red", "blue"])))
            else:
                ctrl.duplicate_part(target)
            steps += 1

        after = ctrl.snapshot()
        for _ in range(steps):
            assert ctrl.undo()
        assert ctrl.design == start

        for _ in range(steps):
            assert ctrl.redo()
        assert ctrl.design == after


# ===================================================================
# Signals, dirty state, pricing context
# ===================================================================

class TestSignals:
    def setup_method(self):
        self.ctrl = _controller()

    def test_add_emits(self):
        added, validation, pricing = MagicMock(), MagicMock(), MagicMock()
        self.ctrl.instance_added.connect(added)
        self.ctrl.validation_changed.connect(validation)
        self.ctrl.pricing_changed.connect(pricing)
        deck = self.ctrl.add_part("deck-4x4")
        added.assert_called_once_with(deck)
        validation.assert_called_once_with(self.ctrl.validation)
        pricing.assert_called_once_with(self.ctrl.pricing)

    def test_remove_emits(self):
        deck = self.ctrl.add_part("deck-4x4")
        spy = MagicMock()
        self.ctrl.instance_removed.connect(spy)
        self.ctrl.remove_part(deck)
        spy.assert_called_once_with(deck)

    def test_move_emits_instance_changed(self):
        deck = self.ctrl.add_part("deck-4x4")
        spy = MagicMock()
        self.ctrl.instance_changed.connect(spy)
        self.ctrl.move_part(deck, (1, 0, 0))
        spy.assert_called_once_with(deck)

    def test_failed_mutation_emits_nothing(self):
        spy = MagicMock()
        self.ctrl.validation_changed.connect(spy)
        self.ctrl.undo_state_changed.connect(spy)
        with pytest.raises(CatalogMiss):
            self.ctrl.add_part("nope")
        spy.assert_not_called()

    def test_location_reprices_without_history(self):
        self.ctrl.add_part("deck-4x4")
        far = self.ctrl.pricing.total
        version = self.ctrl.version
        self.ctrl.set_location(LocationInfo(city="Durban"))
        assert self.ctrl.pricing.total == far - 600.0
        assert self.ctrl.version == version
        assert self.ctrl.undo_manager.undo_count == 1

    def test_installation_toggle(self):
        self.ctrl.add_part("deck-4x4")
        self.ctrl.set_include_installation(True)
        assert self.ctrl.pricing.installation.total == 2300.0
        self.ctrl.set_include_installation(False)
        assert self.ctrl.pricing.installation is None


class TestDirtyTracking:
    def setup_method(self):
        self.ctrl = _controller()

    def test_clean_at_start(self):
        assert not self.ctrl.is_dirty

    def test_mutation_marks_dirty_once(self):
        spy = MagicMock()
        self.ctrl.dirty_changed.connect(spy)
        deck = self.ctrl.add_part("deck-4x4")
        self.ctrl.move_part(deck, (1, 0, 0))
        assert self.ctrl.is_dirty
        spy.assert_called_once_with(True)

    def test_mark_saved(self):
        self.ctrl.add_part("deck-4x4")
        spy = MagicMock()
        self.ctrl.dirty_changed.connect(spy)
        self.ctrl.mark_saved(self.ctrl.version)
        assert not self.ctrl.is_dirty
        spy.assert_called_once_with(False)

    def test_stale_save_keeps_dirty(self):
        deck = self.ctrl.add_part("deck-4x4")
        saved_at = self.ctrl.version
        self.ctrl.move_part(deck, (1, 0, 0))
        self.ctrl.mark_saved(saved_at)
        assert self.ctrl.is_dirty

    def test_load_increments_session(self):
        session = self.ctrl.session
        self.ctrl.load_design(Design(name="Other"))
        assert self.ctrl.session == session + 1
        assert not self.ctrl.is_dirty

    def test_assign_id(self):
        self.ctrl.assign_id("design-1")
        assert self.ctrl.design.id == "design-1"


# ===================================================================
# Visualization
# ===================================================================

class TestRenderItems:
    def test_items_follow_design_order(self):
        ctrl = _controller()
        deck = ctrl.add_part("deck-4x4")
        swing = ctrl.add_part("swing-single", SWING_POSITION)
        items = ctrl.render_items()
        assert [i.instance_id for i in items] == [deck, swing]
        assert items[0].model_ref == "models/deck-4x4.glb"
        assert items[0].dimensions == (4.0, 4.0, 1.0)
        assert not items[0].highlighted
        assert items[1].highlighted
        assert items[1].bounds.max_z == 7.0

    def test_metric_part_converted_to_feet(self):
        ctrl = _controller()
        ctrl.add_part("bench-metric")
        width, depth, height = ctrl.render_items()[0].dimensions
        assert width == pytest.approx(1.2 / 0.3048)
        assert height == pytest.approx(0.5 / 0.3048)

    def test_unresolved_part(self):
        ctrl = _controller()
        ctrl.load_design(Design(instances=[PlacedInstance("x", "retired-tower")]))
        item = ctrl.render_items()[0]
        assert item.model_ref == ""
        assert item.bounds is None
        assert item.highlighted
