from ostrich.adapters.config import config
from ostrich.adapters.sql_repo import (
    SqlEmailerRepository,
    SqlListingHistoryRepository,
    SqlUserRepository,
)


def _uri(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'ostrich.db'}"


def test_users_round_trip(tmp_path):
    users = SqlUserRepository(_uri(tmp_path))
    created = users.create(email="a@example.com", authentication_id="sub-1", billing_id="Tier 1")

    found = users.get_by_authentication_id("sub-1")
    assert found is not None and found.id == created.id
    assert found.billing_id == "Tier 1"
    assert users.get_by_authentication_id("missing") is None
    assert [u.email for u in users.list_active()] == ["a@example.com"]


def test_emailer_update_and_soft_delete_respect_owner(tmp_path):
    repo = SqlEmailerRepository(_uri(tmp_path))
    data = {"search_param": "Austin, TX", "not_a_column": 1, **config.default_assumptions()}
    row = repo.create(user_id=1, email="a@example.com", data=data)
    assert row.id is not None
    assert row.frequency == "daily"

    assert repo.update(row.id, user_id=2, changes={"notes": "x"}) is None
    updated = repo.update(row.id, user_id=1, changes={"notes": "x", "user_id": 99})
    assert updated.notes == "x"
    assert updated.user_id == 1
    assert updated.updated_at is not None

    assert repo.soft_delete(row.id, user_id=2) is None
    deleted = repo.soft_delete(row.id, user_id=1)
    assert deleted.active is False
    assert repo.list_active() == []
    assert repo.list_by_user(1) == []
    assert repo.get(row.id) is not None


def test_listing_history_newest_first(tmp_path):
    repo = SqlListingHistoryRepository(_uri(tmp_path))
    first = repo.save({"user_id": 1, "emailer_id": 5, "zpid": "1", "price": 100000.0})
    second = repo.save({"user_id": 1, "emailer_id": 5, "zpid": "2", "cash_on_cash": 6.1})
    repo.save({"user_id": 1, "emailer_id": 6, "zpid": "3"})

    rows = repo.list_by_emailer(5)
    assert [r.id for r in rows][:2] == sorted([first, second], reverse=True)
    assert {r.zpid for r in rows} == {"1", "2"}
    assert len(repo.list_by_emailer(5, limit=1)) == 1
