from datetime import timedelta

import pytest

from errors import InvalidIdentity, InvalidState, NotFound, Unauthorized

@pytest.fixture
def apples(chain, clock) -> int:
    return chain.register_product("farmer-a", "Apples", "Mae Rim", clock.now + timedelta(seconds=1000))

def test_supply_chain_scenario(chain, apples) -> None:
    assert apples == 1
    chain.transfer_product("farmer-a", apples, "distributor-b", "Warehouse1")
    p = chain.get_product(apples)
    assert p.current_owner == "distributor-b"
    assert p.current_location == "Warehouse1"
    assert chain.get_product_history(apples) == [
        "Registered at Mae Rim by A",
        "Transferred to B at Warehouse1",
    ]
    assert chain.get_ownership_history(apples) == ["farmer-a", "distributor-b"]

    chain.report_contamination("inspector-c", apples)
    assert chain.get_product(apples).is_contaminated
    with pytest.raises(InvalidState):
        chain.transfer_product("distributor-b", apples, "farmer-a", "Back")
    assert chain.get_product(apples).current_owner == "distributor-b"

def test_ownership_history_tracks_every_transfer(chain, apples) -> None:
    hops = ["distributor-b", "inspector-c", "farmer-a", "distributor-b"]
    owner = "farmer-a"
    for n, new_owner in enumerate(hops, start=1):
        chain.transfer_product(owner, apples, new_owner, f"Stop {n}")
        owners = chain.get_ownership_history(apples)
        assert len(owners) == n + 1
        assert owners[0] == "farmer-a"
        owner = new_owner
    assert len(chain.get_product_history(apples)) == len(hops) + 1

def test_only_current_owner_may_transfer(chain, apples) -> None:
    with pytest.raises(Unauthorized):
        chain.transfer_product("distributor-b", apples, "inspector-c", "Nowhere")
    chain.transfer_product("farmer-a", apples, "distributor-b", "Warehouse1")
    with pytest.raises(Unauthorized):
        chain.transfer_product("farmer-a", apples, "inspector-c", "Nowhere")

def test_unknown_product(chain, apples) -> None:
    with pytest.raises(NotFound):
        chain.transfer_product("farmer-a", 2, "distributor-b", "Warehouse1")

@pytest.mark.parametrize("new_owner", ["", None])
def test_missing_new_owner(chain, apples, new_owner) -> None:
    with pytest.raises(InvalidIdentity):
        chain.transfer_product("farmer-a", apples, new_owner, "Warehouse1")

def test_unverified_new_owner_leaves_owner_unchanged(chain, apples) -> None:
    with pytest.raises(InvalidState):
        chain.transfer_product("farmer-a", apples, "stranger", "Warehouse1")
    assert chain.get_product(apples).current_owner == "farmer-a"
    assert chain.get_ownership_history(apples) == ["farmer-a"]
    assert len(chain.get_product_history(apples)) == 1

def test_expired_product_cannot_move(chain, apples, clock) -> None:
    clock.advance(seconds=1000)
    with pytest.raises(InvalidState, match="expired"):
        chain.transfer_product("farmer-a", apples, "distributor-b", "Warehouse1")

def test_transfer_just_before_expiry(chain, apples, clock) -> None:
    clock.advance(seconds=999)
    chain.transfer_product("farmer-a", apples, "distributor-b", "Warehouse1")
    assert chain.get_product(apples).current_owner == "distributor-b"

def test_ownership_checked_before_product_state(chain, apples) -> None:
    chain.report_contamination("inspector-c", apples)
    with pytest.raises(Unauthorized):
        chain.transfer_product("distributor-b", apples, "inspector-c", "Nowhere")
    with pytest.raises(InvalidState, match="not a verified participant"):
        chain.transfer_product("farmer-a", apples, "stranger", "Nowhere")
    with pytest.raises(InvalidState, match="contaminated"):
        chain.transfer_product("farmer-a", apples, "distributor-b", "Nowhere")
