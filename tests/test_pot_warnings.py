from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from potmonitor.core.errors import StoreReadError, StoreWriteError
from potmonitor.services import pot_warnings


@pytest.fixture
def warn(db, at):
    def _warn(pot_id, measurement_id, minutes=0, threshold_type="min", session=None):
        return pot_warnings.create_warning(
            session or db,
            pot_id=pot_id,
            measurement_type="moisture",
            threshold_type=threshold_type,
            threshold_value=20,
            measured_value=15,
            measurement_id=measurement_id,
            created_at=at(minutes),
        )

    return _warn


@pytest.fixture
def pot(seed):
    user = seed.user()
    node = seed.node(user.id)
    return seed.pot(node.id)


def test_create_warning_starts_active(db, seed, pot):
    m = seed.measurement(pot.id, 15)
    w = pot_warnings.create_warning(
        db,
        pot_id=pot.id,
        measurement_type="moisture",
        threshold_type="min",
        threshold_value=20,
        measured_value=15,
        measurement_id=m["id"],
    )
    assert w["id"]
    assert w["created_at"] is not None
    assert w["dismissed_at"] is None
    assert w["threshold_value"] == 20.0
    assert pot_warnings.get_warning(db, w["id"])["measurement_id"] == m["id"]


def test_create_warning_rejects_unknown_threshold_type(warn, pot):
    with pytest.raises(ValueError):
        warn(pot.id, "m-1", threshold_type="avg")


def test_repeated_breaches_are_not_deduplicated(db, seed, warn, pot):
    m = seed.measurement(pot.id, 15)
    warn(pot.id, m["id"], 0)
    warn(pot.id, m["id"], 1)
    assert len(pot_warnings.list_active_by_pot(db, pot.id)) == 2


def test_list_active_by_pot_newest_first(db, seed, warn, pot):
    m = seed.measurement(pot.id, 15)
    first = warn(pot.id, m["id"], 0)
    second = warn(pot.id, m["id"], 5)
    third = warn(pot.id, m["id"], 2)
    ids = [w["id"] for w in pot_warnings.list_active_by_pot(db, pot.id)]
    assert ids == [second["id"], third["id"], first["id"]]


def test_dismiss_is_one_way(db, seed, warn, at, pot):
    m = seed.measurement(pot.id, 15)
    w = warn(pot.id, m["id"])

    assert pot_warnings.dismiss_warning(db, w["id"], now=at(10)) is True
    assert pot_warnings.list_active_by_pot(db, pot.id) == []
    dismissed_at = pot_warnings.get_warning(db, w["id"])["dismissed_at"]
    assert dismissed_at is not None

    assert pot_warnings.dismiss_warning(db, w["id"], now=at(20)) is False
    assert pot_warnings.get_warning(db, w["id"])["dismissed_at"] == dismissed_at


def test_dismiss_unknown_or_foreign_warning(db, seed, warn, pot):
    other = seed.pot(pot.node_id, name="thyme")
    m = seed.measurement(pot.id, 15)
    w = warn(pot.id, m["id"])

    assert pot_warnings.dismiss_warning(db, "missing") is False
    assert pot_warnings.dismiss_warning(db, w["id"], pot_id=other.id) is False
    assert pot_warnings.get_warning(db, w["id"])["dismissed_at"] is None
    assert pot_warnings.get_warning(db, "missing") is None


def test_dismiss_all_keeps_earlier_dismissals(db, seed, warn, at, pot):
    m = seed.measurement(pot.id, 15)
    warnings = [warn(pot.id, m["id"], i) for i in range(4)]
    pot_warnings.dismiss_warning(db, warnings[0]["id"], now=at(30))
    first_dismissal = pot_warnings.get_warning(db, warnings[0]["id"])["dismissed_at"]

    assert pot_warnings.dismiss_all(db, pot.id, now=at(60)) is True

    assert pot_warnings.list_active_by_pot(db, pot.id) == []
    states = [pot_warnings.get_warning(db, w["id"])["dismissed_at"] for w in warnings]
    assert all(s is not None for s in states)
    assert states[0] == first_dismissal
    assert len(set(states[1:])) == 1
    assert states[1] != first_dismissal


def test_dismiss_all_with_nothing_active(db, pot):
    assert pot_warnings.dismiss_all(db, pot.id) is True


def test_list_active_by_node_spans_its_pots_only(db, seed, warn):
    user = seed.user()
    node = seed.node(user.id)
    other_node = seed.node(user.id, name="balcony")
    pot_a = seed.pot(node.id)
    pot_b = seed.pot(node.id, name="mint")
    foreign = seed.pot(other_node.id, name="fern")

    a = warn(pot_a.id, seed.measurement(pot_a.id, 15)["id"], 0)
    b = warn(pot_b.id, seed.measurement(pot_b.id, 15)["id"], 1)
    dismissed = warn(pot_b.id, seed.measurement(pot_b.id, 15)["id"], 2)
    warn(foreign.id, seed.measurement(foreign.id, 15)["id"], 3)
    pot_warnings.dismiss_warning(db, dismissed["id"])

    ids = [w["id"] for w in pot_warnings.list_active_by_node(db, node.id)]
    assert ids == [b["id"], a["id"]]


def test_read_failure_is_not_an_empty_list():
    db = MagicMock()
    db.scalars.side_effect = OperationalError("SELECT", {}, Exception("connection lost"))
    with pytest.raises(StoreReadError):
        pot_warnings.list_active_by_pot(db, "pot-1")
    with pytest.raises(StoreReadError):
        pot_warnings.list_active_by_node(db, "node-1")


def test_write_failure_rolls_back_and_raises(warn):
    broken = MagicMock()
    broken.commit.side_effect = OperationalError("UPDATE", {}, Exception("disk full"))
    with pytest.raises(StoreWriteError):
        pot_warnings.dismiss_all(broken, "pot-1")
    broken.rollback.assert_called_once()

    broken.rollback.reset_mock()
    with pytest.raises(StoreWriteError):
        warn("pot-1", "m-1", session=broken)
    broken.rollback.assert_called_once()
