from fastapi.testclient import TestClient

from app import create_app
from config import Settings
from scripts.simulate_supply_chain import CHAIN, main
from service import FoodTraceService

def test_simulation_walks_the_chain(capsys) -> None:
    app = create_app(Settings(store_backend="memory"), FoodTraceService("admin"))
    with TestClient(app) as client:
        summary = main(client, api="", admin_id="admin")

    assert summary["owners"] == [identity for identity, *_ in CHAIN]
    assert summary["product"]["is_contaminated"] is True
    assert summary["history"][-1] == "Contamination reported by Mae Hia Market"
    assert "registered product 1" in capsys.readouterr().out
