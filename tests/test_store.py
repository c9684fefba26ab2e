"""Unit tests for auth/store.py -- PrincipalStore query methods.

Covers:
- create/get cafés by id and login, with phone numbers
- update_cafe(): partial updates, wholesale phone replacement, blank skipping
- list_cafes() ordering
- duplicate logins / admin phone numbers raise IntegrityError
- admin lookups and has_admins()
"""

import pytest
from sqlalchemy.exc import IntegrityError

from auth.models import Admin, Cafe
from auth.store import PrincipalStore


@pytest.fixture
def store():
    s = PrincipalStore("sqlite:///:memory:")
    yield s
    s.close()


def _cafe(login: str = "bluecup", name: str = "Blue Cup", **kwargs) -> Cafe:
    return Cafe(login=login, name=name, hashed_password="$2b$12$placeholder", **kwargs)


class TestCafes:
    def test_create_and_get(self, store):
        cafe_id = store.create_cafe(_cafe(code="BC01", phone_numbers=["+99312000001", "+99312000002"]))
        cafe = store.get_cafe_by_id(cafe_id)
        assert cafe is not None
        assert cafe.login == "bluecup"
        assert cafe.role == "cafe"
        assert cafe.code == "BC01"
        assert cafe.phone_numbers == ["+99312000001", "+99312000002"]
        assert cafe.created_at

    def test_get_by_login(self, store):
        cafe_id = store.create_cafe(_cafe())
        assert store.get_cafe_by_login("bluecup").id == cafe_id
        assert store.get_cafe_by_login("BLUECUP") is None

    def test_missing_cafe(self, store):
        assert store.get_cafe_by_id(999) is None
        assert store.get_cafe_by_login("ghost") is None

    def test_duplicate_login(self, store):
        store.create_cafe(_cafe())
        with pytest.raises(IntegrityError):
            store.create_cafe(_cafe(name="Other"))

    def test_blank_phone_numbers_skipped_on_create(self, store):
        cafe_id = store.create_cafe(_cafe(phone_numbers=["", "  ", "+99312000003"]))
        assert store.get_cafe_by_id(cafe_id).phone_numbers == ["+99312000003"]

    def test_list_cafes_ordered_by_name(self, store):
        store.create_cafe(_cafe(login="z", name="Zebra"))
        store.create_cafe(_cafe(login="a", name="Apple"))
        assert [c.name for c in store.list_cafes()] == ["Apple", "Zebra"]


class TestUpdateCafe:
    def test_update_name_only(self, store):
        cafe_id = store.create_cafe(_cafe(phone_numbers=["+1"]))
        updated = store.update_cafe(cafe_id, name="Blue Cup Two")
        assert updated.name == "Blue Cup Two"
        assert updated.phone_numbers == ["+1"]

    def test_empty_name_ignored(self, store):
        cafe_id = store.create_cafe(_cafe())
        assert store.update_cafe(cafe_id, name="").name == "Blue Cup"

    def test_phone_numbers_replaced(self, store):
        cafe_id = store.create_cafe(_cafe(phone_numbers=["+1", "+2"]))
        updated = store.update_cafe(cafe_id, phone_numbers=["+3", "", "+4"])
        assert updated.phone_numbers == ["+3", "+4"]

    def test_empty_phone_list_keeps_existing(self, store):
        cafe_id = store.create_cafe(_cafe(phone_numbers=["+1"]))
        assert store.update_cafe(cafe_id, phone_numbers=[]).phone_numbers == ["+1"]

    def test_blank_only_phone_list_clears(self, store):
        cafe_id = store.create_cafe(_cafe(phone_numbers=["+1", "+2"]))
        assert store.update_cafe(cafe_id, phone_numbers=["", "  "]).phone_numbers == []

    def test_password_hash_replaced(self, store):
        cafe_id = store.create_cafe(_cafe())
        updated = store.update_cafe(cafe_id, hashed_password="$2b$12$newhash")
        assert updated.hashed_password == "$2b$12$newhash"

    def test_unknown_cafe(self, store):
        assert store.update_cafe(999, name="x") is None


class TestAdmins:
    def test_create_and_lookup(self, store):
        assert store.has_admins() is False
        admin_id = store.create_admin(Admin(phone_number="+99361000000", hashed_password="h", first_name="Aman"))
        assert store.has_admins() is True
        admin = store.get_admin_by_phone("+99361000000")
        assert admin.id == admin_id
        assert admin.role == "admin"
        assert admin.first_name == "Aman"
        assert store.get_admin_by_id(admin_id).phone_number == "+99361000000"

    def test_duplicate_phone(self, store):
        store.create_admin(Admin(phone_number="+99361000000", hashed_password="h"))
        with pytest.raises(IntegrityError):
            store.create_admin(Admin(phone_number="+99361000000", hashed_password="h2"))

    def test_unknown_admin(self, store):
        assert store.get_admin_by_phone("+0") is None
        assert store.get_admin_by_id(5) is None

    def test_ping(self, store):
        assert store.ping() is True
