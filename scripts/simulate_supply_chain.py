"""
Walk one product through the supply chain over the HTTP API.
Run:
    ADMIN_ID=admin python scripts/simulate_supply_chain.py
"""
import os
from datetime import datetime, timedelta, timezone

import requests

API = os.getenv("API_URL", "http://localhost:8000")
ADMIN_ID = os.getenv("ADMIN_ID", "admin")

CHAIN = [
    ("sim-farm", "Doi Saket Hydro", "farmer", "Doi Saket, Chiang Mai"),
    ("sim-packer", "Hang Dong Packing", "processor", "Packing Line 2"),
    ("sim-truck", "Cold Truck CM-102", "distributor", "Truck CM-102"),
    ("sim-shop", "Mae Hia Market", "retailer", "Shelf 4"),
]

def main(client=requests, api: str = API, admin_id: str = ADMIN_ID) -> dict:
    for identity, name, role, _ in CHAIN:
        r = client.post(f"{api}/api/participants", headers={"X-Caller-Id": admin_id},
                        json={"identity": identity, "name": name, "role": role})
        print("participant", identity, r.status_code)

    farmer, _, _, origin = CHAIN[0]
    expiry = datetime.now(timezone.utc) + timedelta(days=7)
    r = client.post(f"{api}/api/products", headers={"X-Caller-Id": farmer},
                    json={"name": "Pak Choi", "origin": origin, "expiry_date": expiry.isoformat()})
    r.raise_for_status()
    product_id = r.json()["product_id"]
    print("registered product", product_id)

    for (owner, *_), (new_owner, _, _, location) in zip(CHAIN, CHAIN[1:]):
        r = client.post(f"{api}/api/products/{product_id}/transfer", headers={"X-Caller-Id": owner},
                        json={"new_owner": new_owner, "new_location": location})
        print("transfer", owner, "->", new_owner, r.status_code)

    r = client.post(f"{api}/api/products/{product_id}/contamination", headers={"X-Caller-Id": CHAIN[-1][0]})
    print("contamination:", r.status_code, r.text)

    summary = client.get(f"{api}/api/products/{product_id}").json()
    for line in summary["history"]:
        print("  ", line)
    return summary

if __name__ == "__main__":
    main()
