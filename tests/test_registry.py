from datetime import timedelta

import pytest

from errors import InvalidInput, NotFound, Unauthorized

def _register(svc, clock, name="Apples", origin="Mae Rim", seconds=1000, caller="farmer-a"):
    return svc.register_product(caller, name, origin, clock.now + timedelta(seconds=seconds))

class TestRegisterProduct:
    def test_first_product(self, chain, clock) -> None:
        pid = _register(chain, clock)
        assert pid == 1
        p = chain.get_product(pid)
        assert p.farmer == "farmer-a"
        assert p.current_owner == "farmer-a"
        assert p.current_location == "Mae Rim"
        assert p.harvest_date == clock.now
        assert p.expiry_date == clock.now + timedelta(seconds=1000)
        assert not p.is_contaminated
        assert chain.get_product_history(pid) == ["Registered at Mae Rim by A"]
        assert chain.get_ownership_history(pid) == ["farmer-a"]

    def test_ids_increase_by_one(self, chain, clock) -> None:
        ids = [_register(chain, clock, name=f"Lot {i}") for i in range(5)]
        assert ids == [1, 2, 3, 4, 5]

    def test_failed_registrations_do_not_consume_ids(self, chain, clock) -> None:
        assert _register(chain, clock) == 1
        with pytest.raises(InvalidInput):
            _register(chain, clock, seconds=0)
        with pytest.raises(InvalidInput):
            _register(chain, clock, name="")
        with pytest.raises(Unauthorized):
            _register(chain, clock, caller="stranger")
        assert _register(chain, clock) == 2

    @pytest.mark.parametrize("seconds", [0, -1, -86400])
    def test_expiry_must_be_after_now(self, chain, clock, seconds) -> None:
        with pytest.raises(InvalidInput):
            _register(chain, clock, seconds=seconds)
        assert chain.registry.product_count() == 0
        with pytest.raises(NotFound):
            chain.get_product(1)

    def test_expiry_must_be_a_datetime(self, chain) -> None:
        with pytest.raises(InvalidInput):
            chain.register_product("farmer-a", "Apples", "Mae Rim", "tomorrow")

    def test_naive_expiry_is_read_as_utc(self, chain, clock) -> None:
        naive = (clock.now + timedelta(hours=1)).replace(tzinfo=None)
        pid = chain.register_product("farmer-a", "Apples", "Mae Rim", naive)
        assert chain.get_product(pid).expiry_date == clock.now + timedelta(hours=1)

    def test_unverified_caller(self, chain, clock) -> None:
        with pytest.raises(Unauthorized):
            _register(chain, clock, caller="admin")

    def test_explicit_now_overrides_clock(self, chain, clock) -> None:
        later = clock.now + timedelta(days=2)
        pid = chain.register_product("farmer-a", "Apples", "Mae Rim", later + timedelta(days=1), now=later)
        assert chain.get_product(pid).harvest_date == later

class TestReads:
    @pytest.mark.parametrize("pid", [0, -1, 2, 99])
    def test_out_of_range_ids(self, chain, clock, pid) -> None:
        _register(chain, clock)
        for read in (chain.get_product_history, chain.get_ownership_history, chain.is_product_safe):
            with pytest.raises(NotFound):
                read(pid)

    def test_history_entries_are_structured(self, chain, clock) -> None:
        pid = _register(chain, clock)
        chain.transfer_product("farmer-a", pid, "distributor-b", "Warehouse1")
        entries = chain.get_history_entries(pid)
        assert [e.kind for e in entries] == ["registered", "transferred"]
        assert entries[1].actor == "farmer-a"
        assert entries[1].party == "distributor-b"
        assert entries[1].detail == "Warehouse1"

    def test_list_products_newest_first_with_search(self, chain, clock) -> None:
        _register(chain, clock, name="Hydro Lettuce")
        _register(chain, clock, name="Kale", origin="Doi Saket")
        _register(chain, clock, name="Red Lettuce")
        rows, total = chain.list_products()
        assert total == 3
        assert [p.product_id for p in rows] == [3, 2, 1]
        rows, total = chain.list_products("lettuce")
        assert total == 2
        assert [p.name for p in rows] == ["Red Lettuce", "Hydro Lettuce"]
        rows, total = chain.list_products("doi saket")
        assert [p.name for p in rows] == ["Kale"]

    def test_list_products_pages(self, chain, clock) -> None:
        for i in range(5):
            _register(chain, clock, name=f"Lot {i}")
        rows, total = chain.list_products(page=2, page_size=2)
        assert total == 5
        assert [p.product_id for p in rows] == [3, 2]
        with pytest.raises(InvalidInput):
            chain.list_products(page=0)

    @pytest.mark.parametrize("needle, expected", [
        ("_", ["Kale_Bunch"]),
        ("%", ["100% Juice"]),
        ("e_b", ["Kale_Bunch"]),
        ("\\", []),
    ])
    def test_search_treats_wildcards_literally(self, chain, clock, needle, expected) -> None:
        for name in ("Apples", "Kale_Bunch", "100% Juice"):
            _register(chain, clock, name=name)
        rows, total = chain.list_products(needle)
        assert [p.name for p in rows] == expected
        assert total == len(expected)
